from .assembler import RecordingAssembler, require_full_state
from .decoder import decode
from .decompressor import decompress, decompress_all, inflate_binary_string, is_compressed
from .normalizer import normalize, normalize_record
from .sources import ChunkFetcher, DirectoryChunkFetcher

__all__ = [
    "ChunkFetcher",
    "DirectoryChunkFetcher",
    "RecordingAssembler",
    "decode",
    "decompress",
    "decompress_all",
    "inflate_binary_string",
    "is_compressed",
    "normalize",
    "normalize_record",
    "require_full_state",
]
