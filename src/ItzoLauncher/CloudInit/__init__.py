# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.CloudInit.__init__",
#   "purpose": "User-data discovery and materialisation.",
#   "sections": []
# }
# === /NAVMAP ===

"""
User-data Discovery

Finds the cloud environment the VM booted in and retrieves its user-data:
- Concurrent datasource race with per-source backoff and a global deadline
- EC2, GCE and Azure WA agent datasources
- Transparent gzip unwrapping
- cloud-config ``write_files`` materialisation

Public API:
  select_datasource - Race candidate datasources
  fetch_userdata - Race, fetch and decompress
  process_user_data - Write the launcher files carried by user-data
"""

from .cloud_config import CloudConfig, WriteFile, parse_cloud_config, write_files
from .compression import GZIP_MAGIC, decompress_if_gzip
from .datasources import (
    Datasource,
    EC2MetadataDatasource,
    GCEMetadataDatasource,
    WAAgentDatasource,
    default_datasources,
)
from .instance_identity import InstanceIdentity
from .race import backoff_intervals, exp_backoff, select_datasource
from .resolution import fetch_userdata, process_user_data, read_cell_config

__all__ = [
    "CloudConfig",
    "Datasource",
    "EC2MetadataDatasource",
    "GCEMetadataDatasource",
    "GZIP_MAGIC",
    "InstanceIdentity",
    "WAAgentDatasource",
    "WriteFile",
    "backoff_intervals",
    "decompress_if_gzip",
    "default_datasources",
    "exp_backoff",
    "fetch_userdata",
    "parse_cloud_config",
    "process_user_data",
    "read_cell_config",
    "select_datasource",
    "write_files",
]
