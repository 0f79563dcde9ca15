import os
import ssl

import pytest
import yaml
from typing import Generator
from tests.fake.fake_transport import FakeTransport
from tests.helpers import FakeParleyConfig
from tests.utils import generate_cert_pair, write_pem

from parley.bootstrap.config.settings import ParleyConfig, TLSSettings
from parley.infra.line_framer import LineFramer


@pytest.fixture
def framer():
    return LineFramer(max_message_size=1024)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture(scope="session")
def tls_settings(tmp_path_factory) -> tuple[TLSSettings, TLSSettings]:
    pki = generate_cert_pair()
    base = tmp_path_factory.mktemp("mtls")

    for name, obj in pki.items():
        write_pem(obj, base / name)

    server_tls = TLSSettings(
        certfile=base / "server.pem",
        keyfile=base / "server.key",
        cafile=base / "ca.pem"
    )
    client_tls = TLSSettings(
        certfile=base / "client.pem",
        keyfile=base / "client.key",
        cafile=base / "ca.pem"
    )

    return server_tls, client_tls


@pytest.fixture(scope="session")
def config_file(tmp_path_factory, tls_settings):
    server_tls, _ = tls_settings
    base = tmp_path_factory.mktemp("config")
    file = base / "parley.yaml"

    data = {
        "server": {
            "host": "127.0.0.1",
            "port": 0,
            "backlog": 10,
            "single_shot": True,
            "limit_concurrency": 10,
            "timeout_graceful_shutdown": 1,
            "tls": {
                "certfile": str(server_tls.certfile),
                "keyfile": str(server_tls.keyfile),
                "cafile": str(server_tls.cafile),
            },
        },
        "session": {
            "framing": "line",
            "max_message_size": 4096,
            "read_timeout": 5,
            "write_timeout": 5,
        },
        "responder": {
            "mode": "acknowledge",
        },
    }

    file.write_text(yaml.dump(data))
    return file


@pytest.fixture(scope="session")
def parley_config(config_file, tls_settings) -> Generator[ParleyConfig, None, None]:
    backup = os.environ.copy()

    try:
        os.environ["TEST_PARLEYCONFIG"] = str(config_file)
        yield FakeParleyConfig()
    finally:
        os.environ.clear()
        os.environ.update(backup)


@pytest.fixture(scope="session")
def mtls_contexts(tls_settings, parley_config):
    _, client_tls = tls_settings

    # Server SSLContext (requires client cert)
    server_ctx = parley_config.get_server_ssl_ctx()

    # Client SSLContext (presents client cert)
    client_ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=client_tls.cafile)
    client_ctx.load_cert_chain(client_tls.certfile, client_tls.keyfile)

    return server_ctx, client_ctx
