import ssl
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from pydantic_core.core_schema import ValidationInfo

from parley.bootstrap.config.loader import get_configfile
from parley.core.models.endpoint import Endpoint
from parley.core.responder import DEFAULT_ACKNOWLEDGEMENT


class TLSSettings(BaseModel):
    certfile: Annotated[
        Path,
        Field(description="Path to the listener's TLS certificate (PEM).")
    ]

    keyfile: Annotated[
        Path,
        Field(description="Path to the listener's TLS private key (PEM).")
    ]

    cafile: Annotated[
        Path | None,
        Field(
            description=(
                "Path to a CA certificate (PEM).\n"
                "When set, clients must present a certificate signed by this CA (mTLS)."
            ),
            default=None
        )
    ]

    @field_validator("certfile", "keyfile", "cafile")
    @classmethod
    def validate_path(cls, v: Path | None, _: ValidationInfo) -> Path | None:
        if v is not None and not v.exists():
            raise ValueError(f"Path {v} does not exist.")
        return v


class ServerSettings(BaseModel):
    host: Annotated[
        str,
        Field(
            description="Bind address of the listener.",
            default="127.0.0.1",
            min_length=1
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port of the listener. 0 lets the OS pick a free port.",
            default=5000,
            ge=0,
            le=65535
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=128,
            gt=0
        )
    ]

    single_shot: Annotated[
        bool,
        Field(
            description=(
                "Accept exactly one connection, answer it and stop.\n"
                "When false, keep accepting connections, one session each."
            ),
            default=True
        )
    ]

    limit_concurrency: Annotated[
        int,
        Field(
            description="Maximum number of concurrent sessions when single_shot is false.",
            default=1024,
            gt=0
        )
    ]

    timeout_graceful_shutdown: Annotated[
        float,
        Field(
            description="Maximum time allowed for graceful shutdown.",
            default=5.0,
            ge=0
        )
    ]

    tls: Annotated[
        TLSSettings | None,
        Field(
            description="TLS configuration. Plain TCP when omitted.",
            default=None
        )
    ]

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(host=self.host, port=self.port)


class SessionSettings(BaseModel):
    framing: Annotated[
        Literal["line", "length-prefixed"],
        Field(
            description=(
                "Wire framing of messages.\n"
                "line: newline-delimited UTF-8 text (payload cannot contain a newline).\n"
                "length-prefixed: 4-byte big-endian length followed by UTF-8 payload."
            ),
            default="line"
        )
    ]

    max_message_size: Annotated[
        int,
        Field(
            description="Maximum size in bytes of a single message.",
            default=64 * 1024,
            gt=0
        )
    ]

    read_timeout: Annotated[
        float | None,
        Field(
            description="Seconds to wait for the request. null waits forever.",
            default=30.0
        )
    ]

    write_timeout: Annotated[
        float | None,
        Field(
            description="Seconds to wait for the reply to be accepted by the transport.",
            default=30.0
        )
    ]

    @field_validator("read_timeout", "write_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None, _: ValidationInfo) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("Timeout must be positive, or null to disable it.")
        return v


class ResponderSettings(BaseModel):
    mode: Annotated[
        Literal["acknowledge", "echo"],
        Field(
            description=(
                "acknowledge: reply with a fixed acknowledgement text.\n"
                "echo: reply with the request, prefixed by echo_prefix."
            ),
            default="acknowledge"
        )
    ]

    reply: Annotated[
        str,
        Field(
            description="Acknowledgement text sent in acknowledge mode.",
            default=DEFAULT_ACKNOWLEDGEMENT
        )
    ]

    echo_prefix: Annotated[
        str,
        Field(
            description="Prefix added to the request in echo mode.",
            default=""
        )
    ]


class ParleyConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PARLEY_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    server: Annotated[
        ServerSettings,
        Field(
            description=(
                "Listener configuration.\n"
                "Controls where the listener binds, whether it serves a single\n"
                "connection or keeps accepting, TLS, and shutdown behavior."
            ),
            default_factory=ServerSettings
        )
    ]

    session: Annotated[
        SessionSettings,
        Field(
            description="Per-connection framing, size limit and timeouts.",
            default_factory=SessionSettings
        )
    ]

    responder: Annotated[
        ResponderSettings,
        Field(
            description="How the reply is computed from the request.",
            default_factory=ResponderSettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)
        configfile = get_configfile()
        if configfile is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=configfile),)
        return sources

    def get_server_ssl_ctx(self) -> ssl.SSLContext | None:
        tls = self.server.tls
        if tls is None:
            return None

        ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        ctx.load_cert_chain(certfile=tls.certfile, keyfile=tls.keyfile)
        if tls.cafile is not None:
            ctx.verify_mode = ssl.CERT_REQUIRED
            ctx.load_verify_locations(cafile=tls.cafile)

        return ctx
