#!/usr/bin/env python3
"""
Paperback - Print files as erasure-coded QR codes and restore them from scans

This tool turns a file into a multi-page PDF of QR codes.  Only Reed-Solomon
recovery shards are printed, so any sufficiently large subset of the codes is
enough to restore the original file, regardless of scan order or duplicates.

REQUIREMENTS:
  Python 3.8+

  Install with:
    pip install -e .

  System dependencies (for pdf2image, only needed to restore from PDFs):
    - Linux: sudo apt-get install poppler-utils
    - macOS: brew install poppler

USAGE:
  Create a backup:
    paperback create myfile.txt backup.pdf

  Restore from scanned pages (images or PDFs):
    paperback restore recovered.txt page1.png page2.png ...

  Show the metadata carried by scanned pages:
    paperback info page1.png

For detailed help on each command:
    paperback create --help
    paperback restore --help
    paperback info --help
"""

import sys
import os
import io
import math
import hashlib
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from fractions import Fraction
from functools import partial, lru_cache
from typing import List, Dict, Any, Optional, Tuple, Union, Callable, Iterable, Iterator

import click
import qrcode
from qrcode import base as qr_base
from qrcode.constants import ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q, ERROR_CORRECT_H
from qrcode.exceptions import DataOverflowError
from qrcode.util import QRData, MODE_8BIT_BYTE
from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as pdf_canvas
from reedsolo import RSCodec, ReedSolomonError, find_prime_polys
import cv2
import numpy as np
import zxingcpp

# Version and build constants
VERSION = "0.1.0"
# Bound into every document hash, so files restored by a different release are flagged
BUILD_TAG = f"paperback {VERSION}"

# QR Code error correction mapping
ERROR_CORRECTION_LEVELS = {
    'L': ERROR_CORRECT_L,  # ~7% error correction
    'M': ERROR_CORRECT_M,  # ~15% error correction
    'Q': ERROR_CORRECT_Q,  # ~25% error correction (default)
    'H': ERROR_CORRECT_H,  # ~30% error correction
}

# Weakest to strongest
ERROR_CORRECTION_ORDER = ['L', 'M', 'Q', 'H']

# Page sizes in millimeters (width, height)
PAGE_SIZES = {
    'A4': (210.0, 297.0),
    'LETTER': (215.9, 279.4),
}

DEFAULT_MARGIN_MM = 4.32

# Header and shard constants
IDENTIFIER_LENGTH = 4
HASH_LENGTH = hashlib.sha512().digest_size
META_INDEX = 0xFFFF
LENGTH_TRAILER_SIZE = 8
CODING_BLOCK_SIZE = 64

# QR geometry constants
QR_VERSIONS = range(1, 41)
QUIET_ZONE_MODULES = 4
MODE_INDICATOR_BITS = 4
SYMBOL_BOX_SIZE = 10

# Reed-Solomon over GF(2^16): each codeword symbol is a little-endian 16-bit word
FIELD_EXPONENT = 16
WORD_SIZE = 2
# Data + recovery shards share one codeword per word column
MAX_TOTAL_SHARDS = 2 ** FIELD_EXPONENT - 1

SCAN_DPI = 300


# ============================================================================
# ERRORS
# ============================================================================

class PaperbackError(ValueError):
    """Base class for failures that abort processing of a document."""


class PlanningError(PaperbackError):
    """No QR configuration satisfies the page and reliability constraints."""


class FormatError(PaperbackError):
    """A chunk header is malformed or truncated."""


class EncodingConfigError(PaperbackError):
    """The erasure coder rejected the shard parameters."""


class SymbolCapacityError(PaperbackError):
    """A chunk does not fit into the QR symbol sized for it."""


class MissingMetadataError(PaperbackError):
    """No metadata chunk was recovered."""


class InconsistentMetadataError(PaperbackError):
    """Chunks disagree about which document they belong to."""


class DuplicateConflictError(PaperbackError):
    """The same shard index was decoded with different contents."""


class InsufficientDataError(PaperbackError):
    """Too few distinct shards to reconstruct the document."""


class ChecksumMismatchError(PaperbackError):
    """The reconstructed content does not match the document hash."""


class OverwriteRefusedError(PaperbackError):
    """The destination exists and overwriting was not requested."""


class ScanError(PaperbackError):
    """An input image could not be read."""


# ============================================================================
# HEADER PROTOCOL
# ============================================================================

@dataclass(frozen=True)
class MetaHeader:
    """Header of the metadata QR code; always written with index META_INDEX."""

    identifier: bytes
    document_hash: bytes
    # Number of data shards; none of these are ever printed
    original_count: int
    # Number of recovery shards, the ones actually printed
    recovery_count: int
    # Bytes per shard, excluding headers
    shard_bytes: int

    LENGTH = 2 + IDENTIFIER_LENGTH + HASH_LENGTH + 2 + 2 + 8


@dataclass(frozen=True)
class PayloadHeader:
    """Header of a payload QR code, followed by the recovery shard bytes."""

    index: int
    identifier: bytes

    LENGTH = 2 + IDENTIFIER_LENGTH


Header = Union[MetaHeader, PayloadHeader]


def _pack_uint(value: int, size: int, name: str) -> bytes:
    try:
        return value.to_bytes(size, byteorder='little')
    except OverflowError:
        raise FormatError(f"{name} {value} does not fit in {size * 8} bits")


def _check_field_length(value: bytes, length: int, name: str) -> None:
    if len(value) != length:
        raise FormatError(f"{name} must be {length} bytes, got {len(value)}")


def write_header(header: Header) -> bytes:
    """Serialize a chunk header.

    Binary format (all integers little-endian):
    - Payload: [Index:2][Identifier:4]
    - Meta:    [0xFFFF:2][Identifier:4][Hash:64][OriginalCount:2][RecoveryCount:2][ShardBytes:8]

    Args:
        header: MetaHeader or PayloadHeader

    Returns:
        Header bytes, to be followed by the shard bytes for payload chunks

    Raises:
        FormatError: If a field is out of range or wrongly sized
    """
    buf = bytearray()
    if isinstance(header, MetaHeader):
        _check_field_length(header.identifier, IDENTIFIER_LENGTH, "identifier")
        _check_field_length(header.document_hash, HASH_LENGTH, "document hash")
        buf.extend(_pack_uint(META_INDEX, 2, "index"))
        buf.extend(header.identifier)
        buf.extend(header.document_hash)
        buf.extend(_pack_uint(header.original_count, 2, "original count"))
        buf.extend(_pack_uint(header.recovery_count, 2, "recovery count"))
        buf.extend(_pack_uint(header.shard_bytes, 8, "shard bytes"))
    elif isinstance(header, PayloadHeader):
        _check_field_length(header.identifier, IDENTIFIER_LENGTH, "identifier")
        if header.index == META_INDEX:
            raise FormatError(f"payload index {META_INDEX:#x} is reserved for metadata")
        if header.index < 0:
            raise FormatError(f"payload index {header.index} is negative")
        buf.extend(_pack_uint(header.index, 2, "index"))
        buf.extend(header.identifier)
    else:
        raise TypeError(f"Unsupported header type: {type(header).__name__}")
    return bytes(buf)


def read_header(chunk: bytes) -> Tuple[Header, bytes]:
    """Parse the header at the start of a decoded chunk.

    Args:
        chunk: Raw bytes of one decoded QR code

    Returns:
        Tuple of (header, remainder).  For payload chunks the remainder is the
        shard data.

    Raises:
        FormatError: If the chunk is shorter than its header
    """
    if len(chunk) < 2:
        raise FormatError(f"chunk of {len(chunk)} bytes is too short for a header")

    index = int.from_bytes(chunk[0:2], byteorder='little')

    if index == META_INDEX:
        if len(chunk) < MetaHeader.LENGTH:
            raise FormatError(
                f"metadata chunk has {len(chunk)} bytes, expected at least {MetaHeader.LENGTH}"
            )
        offset = 2
        identifier = bytes(chunk[offset:offset + IDENTIFIER_LENGTH])
        offset += IDENTIFIER_LENGTH
        document_hash = bytes(chunk[offset:offset + HASH_LENGTH])
        offset += HASH_LENGTH
        original_count = int.from_bytes(chunk[offset:offset + 2], byteorder='little')
        offset += 2
        recovery_count = int.from_bytes(chunk[offset:offset + 2], byteorder='little')
        offset += 2
        shard_bytes = int.from_bytes(chunk[offset:offset + 8], byteorder='little')
        offset += 8
        header = MetaHeader(
            identifier=identifier,
            document_hash=document_hash,
            original_count=original_count,
            recovery_count=recovery_count,
            shard_bytes=shard_bytes,
        )
        return header, bytes(chunk[offset:])

    if len(chunk) < PayloadHeader.LENGTH:
        raise FormatError(
            f"payload chunk has {len(chunk)} bytes, expected at least {PayloadHeader.LENGTH}"
        )
    identifier = bytes(chunk[2:PayloadHeader.LENGTH])
    return PayloadHeader(index=index, identifier=identifier), bytes(chunk[PayloadHeader.LENGTH:])


# ============================================================================
# LAYOUT PLANNING
# ============================================================================

@dataclass(frozen=True)
class RecoveryFactor:
    """How much recovery data to print beyond the minimum.

    Exactly one of percentage (relative to the data shard count) or pages
    (a fixed number of extra pages) is set.  Percentages are kept as exact
    fractions so page counts never pick up float rounding.
    """

    percentage: Optional[Fraction] = None
    pages: Optional[int] = None

    @classmethod
    def parse(cls, text: str) -> 'RecoveryFactor':
        """Parse "50%" (percentage), "3x" (multiple of the data) or "2" (pages).

        Raises:
            ValueError: If the text is not a non-negative factor
        """
        value = text.strip()
        try:
            if value.endswith('%'):
                factor = cls(percentage=Fraction(value[:-1]))
            elif value.lower().endswith('x'):
                factor = cls(percentage=Fraction(value[:-1]) * 100)
            else:
                factor = cls(pages=int(value))
        except ValueError:
            raise ValueError(
                f"Invalid recovery factor {text!r}; use a percentage (50%), "
                f"a multiple (3x) or a page count (2)"
            )
        if (factor.percentage or 0) < 0 or (factor.pages or 0) < 0:
            raise ValueError(f"Recovery factor {text!r} must not be negative")
        return factor

    def extra_pages(self, data_shard_count: int, symbols_per_page: int) -> int:
        """Number of pages to print beyond the data page count.

        Example:
            >>> RecoveryFactor(percentage=Fraction(110)).extra_pages(90, 9)
            11
        """
        if self.pages is not None:
            return self.pages
        percentage = Fraction(self.percentage or 0)
        return math.ceil(percentage * data_shard_count / (100 * symbols_per_page))

    def __str__(self) -> str:
        if self.pages is not None:
            return f"{self.pages} page(s)"
        return f"{float(self.percentage):g}%"


@dataclass(frozen=True)
class PageConfig:
    """Page setup and reliability constraints for one create run."""

    paper_size: str = 'A4'
    margin_top: float = DEFAULT_MARGIN_MM
    margin_right: float = DEFAULT_MARGIN_MM
    margin_bottom: float = DEFAULT_MARGIN_MM
    margin_left: float = DEFAULT_MARGIN_MM
    # Length of one QR module (pixel) in millimeters
    module_length: float = 1.0
    # Minimum number of QR codes per row
    row_count: int = 3
    # Minimum error correction level
    error_correction: str = 'Q'
    recovery_factor: RecoveryFactor = field(default_factory=lambda: RecoveryFactor(percentage=Fraction(50)))

    @property
    def page_size(self) -> Tuple[float, float]:
        try:
            return PAGE_SIZES[self.paper_size.upper()]
        except KeyError:
            raise PlanningError(f"Unsupported paper size: {self.paper_size}")


@dataclass(frozen=True)
class LayoutPlan:
    """The selected page, symbol and shard configuration of one document."""

    page_width: float
    page_height: float
    margin_top: float
    margin_right: float
    margin_bottom: float
    margin_left: float
    module_length: float
    # Printable area, excluding margins
    avail_width: float
    avail_height: float

    identifier: bytes
    document_hash: bytes
    version: int
    error_correction: str
    symbols_per_row: int
    # Data bytes per shard, excluding the header; a multiple of CODING_BLOCK_SIZE
    shard_bytes: int
    # Never printed
    data_shard_count: int
    # The shards actually printed
    recovery_shard_count: int
    # Minimum number of pages needed to restore
    data_page_count: int
    total_page_count: int

    @property
    def symbols_per_page(self) -> int:
        return self.symbols_per_row * self.symbols_per_row


def get_qr_modules(qr_version: int) -> int:
    """Get the number of modules (pixels) per side for a QR code version.

    Args:
        qr_version: QR code version (1-40)

    Returns:
        Number of modules per side
    """
    # QR code formula: modules = 4 * version + 17
    return 4 * qr_version + 17


def get_qr_capacity_bits(qr_version: int, error_correction: str) -> int:
    """Number of data bits a QR code can hold, from the standard RS block table."""
    blocks = qr_base.rs_blocks(qr_version, ERROR_CORRECTION_LEVELS[error_correction])
    return 8 * sum(block.data_count for block in blocks)


def calculate_shard_capacity(qr_version: int, error_correction: str) -> int:
    """Calculate the shard bytes that fit one payload QR code in byte mode.

    Subtracts the byte mode indicator, the character count indicator and
    the payload header.  The result is not yet rounded to the coding block
    size.

    Args:
        qr_version: QR code version (1-40)
        error_correction: Error correction level ('L', 'M', 'Q', 'H')

    Returns:
        Shard bytes per QR code (may be zero or negative for tiny versions)
    """
    bits = get_qr_capacity_bits(qr_version, error_correction)
    # Byte mode character count indicator: 8 bits up to version 9, 16 above
    char_count_bits = 8 if qr_version < 10 else 16
    raw_byte_count = (bits - MODE_INDICATOR_BITS - char_count_bits) // 8
    return raw_byte_count - PayloadHeader.LENGTH


def padded_length(data_size: int, shard_bytes: int) -> int:
    """Size of the data plus length trailer, rounded up to whole shards."""
    total = data_size + LENGTH_TRAILER_SIZE
    return -(-total // shard_bytes) * shard_bytes


def compute_layout(config: PageConfig, data_size: int, document_hash: bytes) -> LayoutPlan:
    """Pick the QR configuration that stores the most data per page.

    Within the constraints of the minimum number of codes per row and the
    minimum error correction level, every (version, level) pair is scored by
    usable data bytes per page.  Versions are tried in increasing order and
    levels from strongest to weakest; only a strictly better score replaces
    the current best, so ties keep the stronger error correction.

    Args:
        config: Page setup and constraints
        data_size: Length of the input file in bytes
        document_hash: Document hash; its prefix becomes the identifier

    Returns:
        LayoutPlan for the document

    Raises:
        PlanningError: If no configuration holds enough data
    """
    page_width, page_height = config.page_size
    avail_width = page_width - config.margin_left - config.margin_right
    avail_height = page_height - config.margin_top - config.margin_bottom
    avail_min = min(avail_width, avail_height)
    quiet_zone_width = config.module_length * QUIET_ZONE_MODULES

    if config.error_correction not in ERROR_CORRECTION_ORDER:
        raise PlanningError(f"Unsupported error correction level: {config.error_correction}")
    min_strength = ERROR_CORRECTION_ORDER.index(config.error_correction)

    best_data_bytes_per_page = 0
    best_version = 1
    best_error_correction = 'L'
    best_symbols_per_row = 0
    best_shard_capacity = 0

    for version in QR_VERSIONS:
        # Width per QR code, with one side of quiet zone
        width_per_symbol = config.module_length * (get_qr_modules(version) + QUIET_ZONE_MODULES)
        symbols_per_row = math.floor((avail_min - quiet_zone_width) / width_per_symbol)
        if symbols_per_row < config.row_count:
            continue

        for error_correction in reversed(ERROR_CORRECTION_ORDER):
            if ERROR_CORRECTION_ORDER.index(error_correction) < min_strength:
                continue
            shard_capacity = calculate_shard_capacity(version, error_correction)
            usable = max(shard_capacity, 0) // CODING_BLOCK_SIZE * CODING_BLOCK_SIZE
            data_bytes_per_page = usable * symbols_per_row * symbols_per_row
            if data_bytes_per_page > best_data_bytes_per_page:
                best_data_bytes_per_page = data_bytes_per_page
                best_version = version
                best_error_correction = error_correction
                best_symbols_per_row = symbols_per_row
                best_shard_capacity = shard_capacity

    # Nothing found with at least one coding block per shard
    if best_data_bytes_per_page == 0:
        raise PlanningError(
            "Could not find a QR code configuration that holds enough data; "
            "try lowering --row-count, --error-correction or --module-length"
        )

    shard_bytes = best_shard_capacity // CODING_BLOCK_SIZE * CODING_BLOCK_SIZE
    symbols_per_page = best_symbols_per_row * best_symbols_per_row
    data_shard_count = padded_length(data_size, shard_bytes) // shard_bytes
    data_page_count = -(-data_shard_count // symbols_per_page)
    extra_pages = config.recovery_factor.extra_pages(data_shard_count, symbols_per_page)
    recovery_shard_count = data_shard_count + extra_pages * symbols_per_page
    total_page_count = -(-recovery_shard_count // symbols_per_page)

    return LayoutPlan(
        page_width=page_width,
        page_height=page_height,
        margin_top=config.margin_top,
        margin_right=config.margin_right,
        margin_bottom=config.margin_bottom,
        margin_left=config.margin_left,
        module_length=config.module_length,
        avail_width=avail_width,
        avail_height=avail_height,
        identifier=bytes(document_hash[:IDENTIFIER_LENGTH]),
        document_hash=bytes(document_hash),
        version=best_version,
        error_correction=best_error_correction,
        symbols_per_row=best_symbols_per_row,
        shard_bytes=shard_bytes,
        data_shard_count=data_shard_count,
        recovery_shard_count=recovery_shard_count,
        data_page_count=data_page_count,
        total_page_count=total_page_count,
    )


# ============================================================================
# ERASURE CODING (Reed-Solomon across shards)
# ============================================================================

@lru_cache(maxsize=None)
def _field_polynomial() -> int:
    return find_prime_polys(c_exp=FIELD_EXPONENT, fast_primes=True, single=True)


@lru_cache(maxsize=None)
def _rs_codec(nsym: int) -> RSCodec:
    """Reed-Solomon codec over GF(2^16) with nsym parity symbols.

    Building the field tables is slow in pure Python, so codecs are shared.
    """
    return RSCodec(nsym=nsym, nsize=MAX_TOTAL_SHARDS, prim=_field_polynomial(),
                   c_exp=FIELD_EXPONENT)


def _check_erasure_config(original_count: int, recovery_count: int, shard_bytes: int) -> None:
    if original_count < 1:
        raise EncodingConfigError(f"original shard count must be positive, got {original_count}")
    if recovery_count < 1:
        raise EncodingConfigError(f"recovery shard count must be positive, got {recovery_count}")
    if original_count + recovery_count > MAX_TOTAL_SHARDS:
        raise EncodingConfigError(
            f"{original_count} data + {recovery_count} recovery shards exceeds the "
            f"Reed-Solomon limit of {MAX_TOTAL_SHARDS}; lower the recovery factor "
            f"or use larger QR codes"
        )
    if shard_bytes < 1:
        raise EncodingConfigError(f"shard length must be positive, got {shard_bytes}")
    if shard_bytes % WORD_SIZE:
        raise EncodingConfigError(f"shard length must be a multiple of {WORD_SIZE}, got {shard_bytes}")


def _read_word(shard: bytes, offset: int) -> int:
    return int.from_bytes(shard[offset:offset + WORD_SIZE], byteorder='little')


class ErasureEncoder:
    """Systematic Reed-Solomon encoder producing recovery shards.

    Parity is computed "vertically": for each 16-bit word position, the words
    at that position in all original shards form one message, and the parity
    symbols of its codeword become that word of the recovery shards.  Any
    original_count recovery shards are enough to rebuild the originals.
    """

    def __init__(self, original_count: int, recovery_count: int, shard_bytes: int):
        _check_erasure_config(original_count, recovery_count, shard_bytes)
        self.original_count = original_count
        self.recovery_count = recovery_count
        self.shard_bytes = shard_bytes
        self._shards: List[bytes] = []

    def add_original_shard(self, shard: bytes) -> None:
        if len(self._shards) >= self.original_count:
            raise EncodingConfigError(f"encoder already holds {self.original_count} original shards")
        if len(shard) != self.shard_bytes:
            raise EncodingConfigError(
                f"original shard has {len(shard)} bytes, expected {self.shard_bytes}"
            )
        self._shards.append(bytes(shard))

    def encode(self) -> List[bytes]:
        """Compute all recovery shards.

        Returns:
            List of recovery_count shards, each shard_bytes long

        Raises:
            EncodingConfigError: If not all original shards were added
        """
        if len(self._shards) != self.original_count:
            raise EncodingConfigError(
                f"got {len(self._shards)} original shards, expected {self.original_count}"
            )

        rs = _rs_codec(self.recovery_count)
        recovery_shards = [bytearray() for _ in range(self.recovery_count)]

        for offset in range(0, self.shard_bytes, WORD_SIZE):
            column = [_read_word(shard, offset) for shard in self._shards]
            # Parity words are at the end of the codeword
            parity_words = rs.encode(column)[self.original_count:]
            for i in range(self.recovery_count):
                recovery_shards[i].extend(parity_words[i].to_bytes(WORD_SIZE, byteorder='little'))

        return [bytes(shard) for shard in recovery_shards]


class ErasureDecoder:
    """Rebuild original shards from recovery shards.

    The original_count lowest-indexed recovery shards are used; every other
    position of the codeword, including all original shards, is an erasure.
    """

    def __init__(self, original_count: int, recovery_count: int, shard_bytes: int):
        _check_erasure_config(original_count, recovery_count, shard_bytes)
        self.original_count = original_count
        self.recovery_count = recovery_count
        self.shard_bytes = shard_bytes
        self._shards: Dict[int, bytes] = {}

    def add_recovery_shard(self, index: int, shard: bytes) -> None:
        if not 0 <= index < self.recovery_count:
            raise EncodingConfigError(
                f"recovery shard index {index} is outside 0..{self.recovery_count - 1}"
            )
        if len(shard) != self.shard_bytes:
            raise EncodingConfigError(
                f"recovery shard {index} has {len(shard)} bytes, expected {self.shard_bytes}"
            )
        if index in self._shards:
            raise EncodingConfigError(f"recovery shard {index} was added twice")
        self._shards[index] = bytes(shard)

    def decode(self) -> List[bytes]:
        """Reconstruct the original shards.

        Returns:
            List of original_count shards, in index order

        Raises:
            InsufficientDataError: If fewer than original_count shards were added
        """
        if len(self._shards) < self.original_count:
            raise InsufficientDataError(
                f"Cannot recover: got {len(self._shards)} distinct shards "
                f"but at least {self.original_count} are needed"
            )

        original_count = self.original_count
        used = sorted(self._shards)[:original_count]
        used_set = set(used)
        erase_pos = list(range(original_count)) + [
            original_count + i for i in range(self.recovery_count) if i not in used_set
        ]

        rs = _rs_codec(self.recovery_count)
        restored = [bytearray() for _ in range(original_count)]

        for offset in range(0, self.shard_bytes, WORD_SIZE):
            codeword = [0] * (original_count + self.recovery_count)
            for index in used:
                codeword[original_count + index] = _read_word(self._shards[index], offset)
            try:
                decoded = rs.decode(codeword, erase_pos=erase_pos, only_erasures=True)
            except ReedSolomonError as e:
                raise InsufficientDataError(f"Reed-Solomon recovery failed at byte {offset}: {e}")
            message = decoded[0]
            for i in range(original_count):
                restored[i].extend(message[i].to_bytes(WORD_SIZE, byteorder='little'))

        return [bytes(shard) for shard in restored]


# ============================================================================
# ENCODING FUNCTIONS
# ============================================================================

def calculate_document_hash(data: bytes, build_tag: str = BUILD_TAG) -> bytes:
    """SHA-512 of the file content followed by the build tag."""
    hasher = hashlib.sha512()
    hasher.update(data)
    hasher.update(build_tag.encode('utf-8'))
    return hasher.digest()


def pad_data(data: bytes, shard_bytes: int) -> bytes:
    """Append the original length and zero-pad to a whole number of shards.

    The length is stored as an 8-byte little-endian integer in the last bytes
    of the buffer, so the padding can be stripped after decoding.

    Example:
        >>> pad_data(b"abc", 16).hex()
        '61626300000000000300000000000000'
    """
    size = padded_length(len(data), shard_bytes)
    buf = bytearray(data)
    buf.extend(b'\x00' * (size - len(data) - LENGTH_TRAILER_SIZE))
    buf.extend(len(data).to_bytes(LENGTH_TRAILER_SIZE, byteorder='little'))
    return bytes(buf)


def split_shards(data: bytes, shard_bytes: int) -> List[bytes]:
    return [data[offset:offset + shard_bytes] for offset in range(0, len(data), shard_bytes)]


def create_chunks(data: bytes, plan: LayoutPlan) -> List[bytes]:
    """Erasure-code file data into payload chunks.

    The data is padded and sliced into plan.data_shard_count data shards,
    which are fed to the Reed-Solomon encoder.  Only the recovery shards are
    emitted, each prefixed with its payload header:
    [Index:2][Identifier:4][Shard:shard_bytes]

    Args:
        data: Original file content
        plan: Layout computed for this data

    Returns:
        List of payload chunks, ordered by shard index

    Raises:
        EncodingConfigError: If the erasure coder rejects the plan's parameters
    """
    padded = pad_data(data, plan.shard_bytes)
    if len(padded) != plan.data_shard_count * plan.shard_bytes:
        raise EncodingConfigError(
            f"{len(data)} bytes do not match a layout of {plan.data_shard_count} "
            f"shards of {plan.shard_bytes} bytes"
        )

    encoder = ErasureEncoder(plan.data_shard_count, plan.recovery_shard_count, plan.shard_bytes)
    for shard in split_shards(padded, plan.shard_bytes):
        encoder.add_original_shard(shard)

    chunks = []
    for index, shard in enumerate(encoder.encode()):
        header = PayloadHeader(index=index, identifier=plan.identifier)
        chunks.append(write_header(header) + shard)
    return chunks


def create_meta_header(plan: LayoutPlan) -> MetaHeader:
    return MetaHeader(
        identifier=plan.identifier,
        document_hash=plan.document_hash,
        original_count=plan.data_shard_count,
        recovery_count=plan.recovery_shard_count,
        shard_bytes=plan.shard_bytes,
    )


def create_meta_chunk(plan: LayoutPlan) -> bytes:
    return write_header(create_meta_header(plan))


@dataclass(frozen=True)
class EncodedDocument:
    plan: LayoutPlan
    chunks: List[bytes]
    meta_chunk: bytes


def encode_document(data: bytes, config: PageConfig, build_tag: str = BUILD_TAG) -> EncodedDocument:
    """Hash, plan and erasure-code one file.

    Args:
        data: Original file content
        config: Page setup and constraints
        build_tag: String bound into the document hash

    Returns:
        EncodedDocument with the plan, the payload chunks and the metadata chunk
    """
    document_hash = calculate_document_hash(data, build_tag)
    plan = compute_layout(config, len(data), document_hash)
    chunks = create_chunks(data, plan)
    return EncodedDocument(plan=plan, chunks=chunks, meta_chunk=create_meta_chunk(plan))


# ============================================================================
# QR SYMBOLS
# ============================================================================

def make_symbol(chunk: bytes, qr_version: Optional[int], error_correction: str,
                box_size: int = SYMBOL_BOX_SIZE, border: int = 0) -> Image.Image:
    """Generate a QR code image holding the chunk bytes verbatim.

    Byte mode is forced so the size matches the layout computation, and a
    given version is never grown to make the data fit.

    Args:
        chunk: Chunk bytes (header + shard)
        qr_version: QR code version, or None for the smallest that fits
        error_correction: Error correction level
        box_size: Size of each module in pixels
        border: Quiet zone in modules (the PDF layout provides its own)

    Returns:
        PIL Image of the QR code

    Raises:
        SymbolCapacityError: If the chunk does not fit the requested version
    """
    qr = qrcode.QRCode(
        version=qr_version,
        error_correction=ERROR_CORRECTION_LEVELS[error_correction],
        box_size=box_size,
        border=border,
    )
    qr.add_data(QRData(chunk, mode=MODE_8BIT_BYTE))
    try:
        qr.make(fit=False)
    except DataOverflowError as e:
        raise SymbolCapacityError(
            f"{len(chunk)} bytes do not fit a version {qr_version} QR code "
            f"with error correction {error_correction}"
        ) from e

    img = qr.make_image(fill_color="black", back_color="white")
    return img.get_image()


def make_meta_symbol(meta_chunk: bytes) -> Image.Image:
    """Metadata QR code: smallest version at the highest error correction."""
    return make_symbol(meta_chunk, None, 'H')


def render_symbol_png(chunk: bytes, qr_version: int, error_correction: str) -> bytes:
    """Generate one payload QR code as PNG bytes (runs in worker processes)."""
    img_buffer = io.BytesIO()
    make_symbol(chunk, qr_version, error_correction).save(img_buffer, format='PNG')
    return img_buffer.getvalue()


# ============================================================================
# WORKER POOL
# ============================================================================

def default_workers() -> int:
    return os.cpu_count() or 1


def parallel_map(func: Callable[[Any], Any], items: Iterable[Any],
                 workers: Optional[int] = None) -> Iterator[Any]:
    """Map a picklable function over independent items, preserving order.

    Runs on a process pool of `workers` processes (one per CPU by default);
    with a single worker or a single item the work runs inline.
    """
    items = list(items)
    if workers is None:
        workers = default_workers()

    if workers <= 1 or len(items) <= 1:
        for item in items:
            yield func(item)
        return

    with ProcessPoolExecutor(max_workers=min(workers, len(items))) as executor:
        yield from executor.map(func, items)


def render_symbols(chunks: List[bytes], plan: LayoutPlan,
                   workers: Optional[int] = None) -> Iterator[bytes]:
    """Generate PNG QR codes for all payload chunks, in chunk order."""
    worker = partial(render_symbol_png, qr_version=plan.version,
                     error_correction=plan.error_correction)
    return parallel_map(worker, chunks, workers)


# ============================================================================
# PDF RENDERING
# ============================================================================

def _draw_symbols(c: pdf_canvas.Canvas, plan: LayoutPlan, symbol_pngs: List[bytes],
                  region_bottom: float) -> None:
    # All positions in millimeters until drawn
    symbol_size = plan.module_length * get_qr_modules(plan.version)
    quiet_zone = plan.module_length * QUIET_ZONE_MODULES
    pitch = symbol_size + quiet_zone
    grid_size = symbol_size * plan.symbols_per_row + quiet_zone * (plan.symbols_per_row - 1)

    left = (plan.page_width - grid_size) / 2
    bottom = region_bottom + (plan.avail_width - grid_size) / 2

    for position, png in enumerate(symbol_pngs):
        row, col = divmod(position, plan.symbols_per_row)
        x = left + col * pitch
        y = bottom + (plan.symbols_per_row - 1 - row) * pitch
        c.drawImage(ImageReader(io.BytesIO(png)), x * mm, y * mm,
                    width=symbol_size * mm, height=symbol_size * mm)


def _fit_font_size(lines: List[str], font: str, size: float, width: float) -> float:
    widest = max(stringWidth(line, font, size) for line in lines)
    if widest <= width:
        return size
    return size * width / widest


def _draw_banner(c: pdf_canvas.Canvas, plan: LayoutPlan, meta_image: ImageReader,
                 meta_modules: int, page_idx: int, bounds: Tuple[float, float, float, float],
                 build_tag: str) -> None:
    left, bottom, right, top = (value * mm for value in bounds)
    symbol_size = (top - bottom) / 2
    quiet_zone = symbol_size / meta_modules * QUIET_ZONE_MODULES

    # Metadata QR codes on both sides, so one damaged corner is not fatal
    c.drawImage(meta_image, left + quiet_zone, bottom + quiet_zone,
                width=symbol_size, height=symbol_size)
    c.drawImage(meta_image, right - symbol_size - quiet_zone, bottom + quiet_zone,
                width=symbol_size, height=symbol_size)

    text_left = left + symbol_size + 2 * quiet_zone
    text_right = right - symbol_size - 2 * quiet_zone
    text_width = text_right - text_left

    # Program line
    tag_size = _fit_font_size([build_tag], "Courier", 14, text_width)
    c.setFont("Courier", tag_size)
    c.drawCentredString((text_left + text_right) / 2, top - tag_size, build_tag)

    # Document ID and page info along the bottom
    info_size = 24
    label_size = 14
    info_y = bottom + quiet_zone
    label_y = info_y + info_size + 2
    page_info = (f"{page_idx + 1}/{plan.data_page_count}"
                 f"+{plan.total_page_count - plan.data_page_count}")

    c.setFont("Courier", info_size)
    c.drawString(text_left, info_y, plan.identifier.hex().upper())
    c.drawRightString(text_right, info_y, page_info)
    c.setFont("Helvetica-Bold", label_size)
    c.drawString(text_left, label_y, "Document ID")
    c.drawRightString(text_right, label_y, "Page Info")

    if plan.data_page_count == 1:
        needed = "any page is scanned"
    else:
        needed = f"at least {plan.data_page_count} pages are combined"
    lines = [
        "This is a paper backup created using the program listed above.",
        f"When {needed}, it can be used to restore",
        "the original file.  More pages may be required if some QR codes",
        "fail to be decoded.  At least one copy of the QR code to the left",
        "and right of this text is required.",
    ]
    description_size = _fit_font_size(lines, "Helvetica", 10, text_width)
    text = c.beginText(text_left, top - tag_size - 2 * description_size)
    text.setFont("Helvetica", description_size, leading=description_size * 1.2)
    for line in lines:
        text.textLine(line)
    c.drawText(text)


def generate_pdf(symbol_pngs: List[bytes], meta_symbol: Image.Image, output_path: str,
                 plan: LayoutPlan, title: str, build_tag: str = BUILD_TAG) -> None:
    """Create a multi-page PDF from payload QR codes.

    Each page holds a square grid of symbols_per_row x symbols_per_row codes
    at the exact module length of the plan, separated by quiet zones.  The
    remaining strip holds a banner with two copies of the metadata QR code,
    the document identifier and the page number.  The grid alternates
    between the bottom and the top of the page so duplex prints leave a
    gutter.

    Args:
        symbol_pngs: PNG bytes of payload QR codes, in shard order
        meta_symbol: Image of the metadata QR code
        output_path: Path for output PDF
        plan: Layout of the document
        title: PDF document title
        build_tag: Program identification printed in the banner

    Raises:
        PlanningError: If the page leaves no room for the banner
    """
    banner_height = plan.avail_height - plan.avail_width
    if banner_height <= 0:
        raise PlanningError(
            "The page leaves no room for the banner; reduce the top or bottom margin"
        )

    c = pdf_canvas.Canvas(output_path, pagesize=(plan.page_width * mm, plan.page_height * mm))
    c.setTitle(title)
    c.setCreator(build_tag)

    img_buffer = io.BytesIO()
    meta_symbol.save(img_buffer, format='PNG')
    img_buffer.seek(0)
    meta_image = ImageReader(img_buffer)
    meta_modules = meta_symbol.size[0] // SYMBOL_BOX_SIZE

    symbols_per_page = plan.symbols_per_page
    for page_idx in range(plan.total_page_count):
        codes_at_bottom = page_idx % 2 == 0
        if codes_at_bottom:
            region_bottom = plan.margin_bottom
            banner_bottom = plan.margin_bottom + plan.avail_width
        else:
            region_bottom = plan.margin_bottom + banner_height
            banner_bottom = plan.margin_bottom

        start = page_idx * symbols_per_page
        _draw_symbols(c, plan, symbol_pngs[start:start + symbols_per_page], region_bottom)

        bounds = (plan.margin_left, banner_bottom,
                  plan.margin_left + plan.avail_width, banner_bottom + banner_height)
        _draw_banner(c, plan, meta_image, meta_modules, page_idx, bounds, build_tag)

        c.showPage()

    c.save()


# ============================================================================
# SCANNING FUNCTIONS
# ============================================================================

@dataclass(frozen=True)
class ScanResult:
    """QR payloads decoded from one input file."""

    path: str
    chunks: List[bytes]
    error: Optional[str] = None


def pdf_to_images(pdf_path: str) -> List[np.ndarray]:
    """Convert PDF pages to OpenCV images.

    Args:
        pdf_path: Path to PDF file

    Returns:
        List of images as numpy arrays (OpenCV format)
    """
    from pdf2image import convert_from_path

    # Convert PDF to PIL images
    pil_images = convert_from_path(pdf_path, dpi=SCAN_DPI)

    # Convert to OpenCV format (numpy arrays)
    cv_images = []
    for pil_img in pil_images:
        img_array = np.array(pil_img.convert('RGB'))
        # Convert RGB to BGR for OpenCV
        cv_images.append(cv2.cvtColor(img_array, cv2.COLOR_RGB2BGR))

    return cv_images


def load_scan_images(path: str) -> List[np.ndarray]:
    """Load an image file, or every page of a PDF, as OpenCV images.

    Raises:
        ScanError: If the image cannot be read
    """
    if path.lower().endswith('.pdf'):
        return pdf_to_images(path)

    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise ScanError(f"Cannot read image: {path}")
    return [image]


def decode_symbols_from_image(image: np.ndarray) -> List[bytes]:
    """Find and decode all QR codes in an image.

    Args:
        image: OpenCV image (numpy array, BGR or grayscale)

    Returns:
        List of raw chunk bytes, one per QR code found
    """
    # Convert to grayscale for better detection
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image

    results = zxingcpp.read_barcodes(
        gray,
        formats=zxingcpp.BarcodeFormat.QRCode,
        try_rotate=True,
        try_downscale=True,
    )
    return [bytes(result.bytes) for result in results if result.bytes]


def scan_file(path: str) -> ScanResult:
    """Decode every QR code in one image or PDF file.

    Failures are reported in the result instead of raised, so one unreadable
    file does not stop the others.
    """
    try:
        chunks = []
        for image in load_scan_images(path):
            chunks.extend(decode_symbols_from_image(image))
    except Exception as e:
        return ScanResult(path=path, chunks=[], error=str(e) or type(e).__name__)
    return ScanResult(path=path, chunks=chunks)


def scan_files(paths: List[str], workers: Optional[int] = None) -> Iterator[ScanResult]:
    """Scan input files in parallel; results come back in input order."""
    return parallel_map(scan_file, paths, workers)


# ============================================================================
# RECONSTRUCTION FUNCTIONS
# ============================================================================

class ChunkCollection:
    """Validated, deduplicated chunks of one document.

    Holds a single metadata slot and a map of shard index to shard bytes.
    Chunks may arrive in any order; payload chunks seen before the metadata
    are bound to the identifier of the first payload chunk, and the metadata
    hash must later start with it.
    """

    def __init__(self):
        self.meta: Optional[MetaHeader] = None
        self.identifier: Optional[bytes] = None
        self.shards: Dict[int, bytes] = {}
        self.chunk_count = 0
        self.duplicate_count = 0

    def add(self, chunk: bytes) -> None:
        """Parse and merge one decoded chunk.

        Raises:
            FormatError: If the header cannot be parsed
            InconsistentMetadataError: If the chunk belongs to another document
            DuplicateConflictError: If a shard index repeats with other bytes
        """
        header, payload = read_header(chunk)
        self.chunk_count += 1
        if isinstance(header, MetaHeader):
            self._add_meta(header)
        else:
            self._add_payload(header, payload)

    def _add_meta(self, meta: MetaHeader) -> None:
        if not meta.document_hash.startswith(meta.identifier):
            raise InconsistentMetadataError(
                f"Metadata chunk identifier {meta.identifier.hex()} does not match its document hash"
            )
        if self.meta is not None:
            if meta != self.meta:
                raise InconsistentMetadataError(
                    "Metadata chunks disagree; the scans may come from different documents"
                )
            return
        if self.identifier is not None and not meta.document_hash.startswith(self.identifier):
            raise InconsistentMetadataError(
                f"Metadata chunk belongs to document {meta.identifier.hex()}, "
                f"but payload chunks belong to {self.identifier.hex()}"
            )
        self.meta = meta

    def _add_payload(self, header: PayloadHeader, payload: bytes) -> None:
        if self.meta is not None:
            if not self.meta.document_hash.startswith(header.identifier):
                raise InconsistentMetadataError(
                    f"Shard {header.index} belongs to document {header.identifier.hex()}, "
                    f"expected {self.meta.identifier.hex()}"
                )
        elif self.identifier is not None:
            if header.identifier != self.identifier:
                raise InconsistentMetadataError(
                    f"Shard {header.index} belongs to document {header.identifier.hex()}, "
                    f"expected {self.identifier.hex()}"
                )
        else:
            self.identifier = header.identifier

        existing = self.shards.get(header.index)
        if existing is not None:
            if existing != payload:
                raise DuplicateConflictError(
                    f"Shard {header.index} was decoded twice with different contents; "
                    f"a scan is corrupted"
                )
            self.duplicate_count += 1
            return
        self.shards[header.index] = payload


def collect_chunks(chunk_binaries: Iterable[bytes]) -> ChunkCollection:
    collection = ChunkCollection()
    for chunk in chunk_binaries:
        collection.add(chunk)
    return collection


def strip_padding(shards: List[bytes]) -> bytes:
    """Concatenate restored data shards and cut them at the stored length.

    Raises:
        ChecksumMismatchError: If the length trailer points outside the data
    """
    data = b''.join(shards)
    expected_size = int.from_bytes(shards[-1][-LENGTH_TRAILER_SIZE:], byteorder='little')
    if expected_size > len(data) - LENGTH_TRAILER_SIZE:
        raise ChecksumMismatchError(
            f"Length trailer claims {expected_size:,} bytes but only "
            f"{len(data) - LENGTH_TRAILER_SIZE:,} were restored; data corruption detected"
        )
    return data[:expected_size]


def reassemble_chunks(chunk_binaries: Iterable[bytes],
                      build_tag: str = BUILD_TAG) -> Tuple[bytes, Dict[str, Any]]:
    """Validate, deduplicate and erasure-decode chunks into the original file.

    Validates:
    - All chunks carry the identifier of one document
    - All metadata chunks are identical
    - Repeated shard indices carry identical bytes
    - The restored content matches the document hash

    Args:
        chunk_binaries: Raw bytes of decoded QR codes, in any order
        build_tag: Build tag the document was hashed with

    Returns:
        Tuple of (file_data, report_dict)

    Raises:
        MissingMetadataError: If no metadata chunk was found
        InsufficientDataError: If too few distinct shards are available
        ChecksumMismatchError: If the restored data does not match the hash
        PaperbackError: For any other inconsistency between chunks
    """
    collection = collect_chunks(chunk_binaries)

    meta = collection.meta
    if meta is None:
        raise MissingMetadataError("Could not locate any metadata chunks")

    decoder = ErasureDecoder(meta.original_count, meta.recovery_count, meta.shard_bytes)
    for index, shard in sorted(collection.shards.items()):
        if index >= meta.recovery_count:
            raise InconsistentMetadataError(
                f"Shard index {index} is outside the {meta.recovery_count} recovery shards "
                f"announced by the metadata"
            )
        if len(shard) != meta.shard_bytes:
            raise InconsistentMetadataError(
                f"Shard {index} has {len(shard)} bytes, metadata announces {meta.shard_bytes}"
            )
        decoder.add_recovery_shard(index, shard)

    click.echo(f"Data loaded: got {len(collection.shards)}/{meta.recovery_count} recovery shards "
               f"({meta.original_count} needed)")

    file_data = strip_padding(decoder.decode())

    actual_hash = calculate_document_hash(file_data, build_tag)
    if actual_hash != meta.document_hash:
        raise ChecksumMismatchError(
            f"Checksum verification failed! "
            f"Expected: {meta.document_hash.hex()[:32]}..., "
            f"Got: {actual_hash.hex()[:32]}... "
            f"Data corruption detected."
        )

    report = {
        'chunks': collection.chunk_count,
        'found_shards': len(collection.shards),
        'duplicate_shards': collection.duplicate_count,
        'original_count': meta.original_count,
        'recovery_count': meta.recovery_count,
        'shard_bytes': meta.shard_bytes,
        'file_size': len(file_data),
        'identifier': meta.identifier.hex(),
        'hash': meta.document_hash.hex(),
    }
    return file_data, report


def write_output(output_path: str, file_data: bytes, force: bool = False) -> None:
    """Write restored data, refusing to replace an existing file unless forced.

    Raises:
        OverwriteRefusedError: If output_path exists and force is False
    """
    if os.path.exists(output_path) and not force:
        raise OverwriteRefusedError(
            f"Output file '{output_path}' already exists. Use --force to overwrite."
        )
    with open(output_path, 'wb' if force else 'xb') as f:
        f.write(file_data)


def read_chunks(input_paths: List[str], workers: Optional[int] = None) -> List[bytes]:
    """Scan all inputs and gather the decoded chunk bytes.

    Unreadable files are reported and skipped.

    Raises:
        ScanError: If no QR code was found in any input
    """
    chunk_binaries = []
    with click.progressbar(length=len(input_paths), label='Scanning') as bar:
        for result in scan_files(list(input_paths), workers):
            bar.update(1)
            if result.error is not None:
                click.echo(f"\nWarning: {result.path}: {result.error}", err=True)
                continue
            chunk_binaries.extend(result.chunks)

    if not chunk_binaries:
        raise ScanError("No QR codes found in the input files")
    click.echo(f"Decoded {len(chunk_binaries)} QR codes from {len(input_paths)} file(s)")
    return chunk_binaries


# ============================================================================
# CLI COMMANDS
# ============================================================================

class RecoveryFactorParamType(click.ParamType):
    name = 'factor'

    def convert(self, value, param, ctx):
        if isinstance(value, RecoveryFactor):
            return value
        try:
            return RecoveryFactor.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


RECOVERY_FACTOR = RecoveryFactorParamType()


@click.group()
@click.version_option(version=VERSION)
def cli():
    """Paperback - Print files as erasure-coded QR codes for offline storage.

    Files are encoded into multi-page PDF documents of QR codes, and can be
    restored from photographs or scans of any sufficient subset of them.
    """
    pass


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_file', type=click.Path(dir_okay=False))
@click.option('-r', '--row-count', type=click.IntRange(min=1), default=3,
              help='Minimum number of QR codes per row [default: 3]')
@click.option('-R', '--recovery-factor', type=RECOVERY_FACTOR, default='50%',
              help='Extra recovery data: a percentage of the data ("50%"), a multiple ("3x") '
                   'or a number of pages ("2") [default: 50%]')
@click.option('-e', '--error-correction', type=click.Choice(['L', 'M', 'Q', 'H'], case_sensitive=False),
              default='Q', help='Minimum error correction level: L(7%), M(15%), Q(25%), H(30%) [default: Q]')
@click.option('-m', '--module-length', type=click.FloatRange(min=0, min_open=True), default=1.0,
              help='Width of one QR module in mm; larger is easier to scan [default: 1.0]')
@click.option('-p', '--paper-size', type=click.Choice(['a4', 'letter'], case_sensitive=False),
              default='a4', help='Paper size [default: a4]')
@click.option('--margin-top', type=float, default=DEFAULT_MARGIN_MM, help='Top margin in mm')
@click.option('--margin-right', type=float, default=DEFAULT_MARGIN_MM, help='Right margin in mm')
@click.option('--margin-bottom', type=float, default=DEFAULT_MARGIN_MM, help='Bottom margin in mm')
@click.option('--margin-left', type=float, default=DEFAULT_MARGIN_MM, help='Left margin in mm')
@click.option('-j', '--jobs', type=click.IntRange(min=1), default=None,
              help='Worker processes for QR generation [default: one per CPU]')
@click.option('--override-build-tag', type=str, default=BUILD_TAG, hidden=True)
def create(input_file, output_file, row_count, recovery_factor, error_correction, module_length,
           paper_size, margin_top, margin_right, margin_bottom, margin_left, jobs,
           override_build_tag):
    """Create a QR code backup PDF from a file.

    Example:
        paperback create mydata.txt backup.pdf
        paperback create mydata.txt backup.pdf -R 100% -e H
    """
    try:
        with open(input_file, 'rb') as f:
            file_data = f.read()

        config = PageConfig(
            paper_size=paper_size.upper(),
            margin_top=margin_top,
            margin_right=margin_right,
            margin_bottom=margin_bottom,
            margin_left=margin_left,
            module_length=module_length,
            row_count=row_count,
            error_correction=error_correction.upper(),
            recovery_factor=recovery_factor,
        )

        click.echo(f"\nEncoding: {input_file} ({len(file_data):,} bytes)")
        document = encode_document(file_data, config, build_tag=override_build_tag)
        plan = document.plan

        click.echo(f"QR Configuration: Version {plan.version}, Error Correction "
                   f"{plan.error_correction}, Module {plan.module_length}mm")
        click.echo(f"Grid Layout: {plan.symbols_per_row} × {plan.symbols_per_row} = "
                   f"{plan.symbols_per_page} QR codes per page")
        click.echo(f"Shards: {plan.data_shard_count} data shards of {plan.shard_bytes:,} bytes, "
                   f"{plan.recovery_shard_count} recovery shards (recovery factor {recovery_factor})")

        symbol_pngs = []
        with click.progressbar(length=len(document.chunks), label='Creating QR codes') as bar:
            for png in render_symbols(document.chunks, plan, workers=jobs):
                symbol_pngs.append(png)
                bar.update(1)
        meta_symbol = make_meta_symbol(document.meta_chunk)

        click.echo("Writing PDF...")
        generate_pdf(symbol_pngs, meta_symbol, output_file, plan,
                     title=os.path.basename(input_file), build_tag=override_build_tag)

        click.echo(f"\nOutput: {output_file}")
        click.echo(f"QR codes: {len(symbol_pngs)} on {plan.total_page_count} page(s)")
        click.echo(f"Any {plan.data_page_count} page(s) are enough to restore; "
                   f"{plan.total_page_count - plan.data_page_count} extra")
        click.echo(f"Document ID: {plan.identifier.hex().upper()}")

    except (PaperbackError, OSError) as e:
        click.echo(f"\nError: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('output_file', type=click.Path(dir_okay=False))
@click.argument('input_files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('-f', '--force', is_flag=True, help='Overwrite existing output file')
@click.option('-j', '--jobs', type=click.IntRange(min=1), default=None,
              help='Worker processes for scanning [default: one per CPU]')
@click.option('--override-build-tag', type=str, default=BUILD_TAG, hidden=True)
def restore(output_file, input_files, force, jobs, override_build_tag):
    """Restore a file from scanned pages (images or PDFs).

    Example:
        paperback restore recovered.txt scan1.png scan2.png
        paperback restore recovered.txt scans.pdf --force
    """
    try:
        if os.path.exists(output_file) and not force:
            raise OverwriteRefusedError(
                f"Output file '{output_file}' already exists. Use --force to overwrite."
            )

        click.echo(f"\nRestoring from {len(input_files)} file(s)...")
        chunk_binaries = read_chunks(list(input_files), workers=jobs)

        click.echo("Reassembling data...")
        file_data, report = reassemble_chunks(chunk_binaries, build_tag=override_build_tag)
        write_output(output_file, file_data, force=force)

        click.echo(f"\nRecovered: {output_file} ({report['file_size']:,} bytes)")
        if report['duplicate_shards']:
            click.echo(f"Duplicate QR codes ignored: {report['duplicate_shards']}")
        click.echo(f"Verification: PASS (Document ID: {report['identifier'].upper()})")

    except (PaperbackError, OSError) as e:
        click.echo(f"\nError: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('input_files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('-j', '--jobs', type=click.IntRange(min=1), default=None,
              help='Worker processes for scanning [default: one per CPU]')
def info(input_files, jobs):
    """Display metadata carried by scanned pages.

    Example:
        paperback info scan1.png
    """
    try:
        click.echo(f"\nReading: {len(input_files)} file(s)")
        collection = collect_chunks(read_chunks(list(input_files), workers=jobs))
        meta = collection.meta

        click.echo(f"\n{'=' * 60}")
        click.echo("PAPERBACK METADATA")
        click.echo(f"{'=' * 60}")
        if meta is None:
            identifier = collection.identifier.hex().upper() if collection.identifier else 'N/A'
            click.echo(f"Document ID:         {identifier}")
            click.echo("Metadata:            Not found (scan a page banner)")
        else:
            needed = max(meta.original_count - len(collection.shards), 0)
            click.echo(f"Document ID:         {meta.identifier.hex().upper()}")
            click.echo(f"SHA-512:             {meta.document_hash.hex()}")
            click.echo(f"Data Shards:         {meta.original_count}")
            click.echo(f"Recovery Shards:     {meta.recovery_count}")
            click.echo(f"Shard Size:          {meta.shard_bytes:,} bytes")
            click.echo(f"Shards Found:        {len(collection.shards)} ({needed} more needed)")
        click.echo(f"Duplicate QR Codes:  {collection.duplicate_count}")
        click.echo(f"{'=' * 60}\n")

    except (PaperbackError, OSError) as e:
        click.echo(f"\nError: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
