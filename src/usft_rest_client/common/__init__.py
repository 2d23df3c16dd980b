# usft_rest_client/common/__init__.py

from usft_rest_client.common.csv_output import (
    LocationCsvWriter,
    locations_to_dataframe,
)
from usft_rest_client.common.logger import setup_logger
from usft_rest_client.common.signing import (
    build_authorization,
    compute_signature,
    format_http_date,
)
from usft_rest_client.common.truststore_context import build_truststore_ssl_context

__all__: list[str] = [
    'LocationCsvWriter',
    'build_authorization',
    'build_truststore_ssl_context',
    'compute_signature',
    'format_http_date',
    'locations_to_dataframe',
    'setup_logger',
]
