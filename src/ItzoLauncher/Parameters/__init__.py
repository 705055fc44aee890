# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.Parameters.__init__",
#   "purpose": "Chunked configuration held in a size-limited parameter store.",
#   "sections": []
# }
# === /NAVMAP ===

"""
Parameter Store Configuration

Reads configuration documents that a size-limited key/value store may have
split into ``<base>-<N>`` fragments, reassembles them in index order and
decodes the result into a flat string mapping.
"""

from .chunks import DEFAULT_BASE_NAME, assemble_chunks, chunk_key, split_document
from .decoder import decode_config
from .ssm import SSMParameterStore, resolve_instance_parameters, resolve_parameters

__all__ = [
    "DEFAULT_BASE_NAME",
    "SSMParameterStore",
    "assemble_chunks",
    "chunk_key",
    "decode_config",
    "resolve_instance_parameters",
    "resolve_parameters",
    "split_document",
]
