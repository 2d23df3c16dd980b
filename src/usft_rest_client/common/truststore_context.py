# usft_rest_client/common/truststore_context.py
"""
SSL context backed by the operating system trust store.

Some deployments of the poller sit behind a TLS-inspecting proxy whose root
certificate lives only in the Windows or macOS certificate store. httpx
verifies against certifi by default and rejects such connections with
`SSLCertVerificationError`. Setting ``api.use_truststore: true`` makes the
executor verify against the OS store instead, without turning verification
off.

`truststore` is imported only when this factory runs, so environments that
never enable the option do not need it importable.
"""

import ssl
from ssl import SSLContext

__all__: list[str] = ['build_truststore_ssl_context']


def build_truststore_ssl_context() -> SSLContext:
    """
    Create a client SSLContext that validates against the OS trust store.

    Returns:
        SSLContext using PROTOCOL_TLS_CLIENT (hostname checking and
        certificate verification enabled).

    Raises:
        RuntimeError: If truststore cannot be imported.
    """
    try:
        import truststore  # noqa: PLC0415
    except ImportError as import_error:
        raise RuntimeError(
            'truststore is required when use_truststore=True; '
            'install it with: pip install truststore'
        ) from import_error

    return truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
