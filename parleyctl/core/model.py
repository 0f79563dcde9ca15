from dataclasses import dataclass, field


@dataclass
class TLSConfig:
    ca: str
    cert: str | None = None
    key: str | None = None


@dataclass
class ClientConfig:
    connect_timeout: str = "5s"
    timeout: str = "30s"
    retries: int = 0


@dataclass
class ContextConfig:
    server: str
    client: ClientConfig = field(default_factory=ClientConfig)
    framing: str = "line"
    tls: TLSConfig | None = None


@dataclass
class ParleyConf:
    current_context: str
    contexts: dict[str, ContextConfig]

    @staticmethod
    def from_dict(data: dict) -> "ParleyConf":
        contexts = {}
        for name, ctx in data.get("contexts", {}).items():
            tls = ctx.get("tls")
            client = ctx.get("client") or {}
            contexts[name] = ContextConfig(
                server=ctx["server"],
                framing=ctx.get("framing", "line"),
                tls=TLSConfig(
                    ca=tls["ca"],
                    cert=tls.get("cert"),
                    key=tls.get("key"),
                ) if tls else None,
                client=ClientConfig(
                    connect_timeout=str(client.get("connect_timeout", "5s")),
                    timeout=str(client.get("timeout", "30s")),
                    retries=int(client.get("retries", 0)),
                ),
            )
        return ParleyConf(
            current_context=data["current-context"],
            contexts=contexts,
        )

    def to_dict(self) -> dict:
        contexts = {}
        for name, ctx in self.contexts.items():
            item: dict = {
                "server": ctx.server,
                "framing": ctx.framing,
                "client": {
                    "connect_timeout": ctx.client.connect_timeout,
                    "timeout": ctx.client.timeout,
                    "retries": ctx.client.retries,
                },
            }
            if ctx.tls:
                item["tls"] = {
                    "ca": ctx.tls.ca,
                    "cert": ctx.tls.cert,
                    "key": ctx.tls.key,
                }
            contexts[name] = item

        return {
            "current-context": self.current_context,
            "contexts": contexts,
        }
