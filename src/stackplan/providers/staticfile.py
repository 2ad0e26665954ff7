"""Static site provider served by nginx."""

from __future__ import annotations

import re
from dataclasses import dataclass

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.plan.model import Package, Phase
from stackplan.providers.base import DetectResult, ProviderMetadata

NGINX_CONF_ASSET = "nginx.conf"

_STATICFILE_ROOT = re.compile(r"^\s*root\s*:\s*(\S+)\s*$", re.MULTILINE)

START_COMMAND = (
    '[[ -z "${PORT}" ]] && echo "Environment variable PORT not found. Using PORT 80" '
    '|| sed -i "s/0000/$PORT/g" /assets/nginx.conf && nginx -c /assets/nginx.conf'
)

NGINX_CONF_TEMPLATE = """\
daemon off;
error_log /dev/stdout info;
worker_processes auto;

events {{
    worker_connections 1024;
}}

http {{
    include /nix/var/nix/profiles/default/conf/mime.types;
    access_log /dev/stdout;
    default_type application/octet-stream;
    sendfile on;

    server {{
        listen 0000 default_server;
        listen [::]:0000 default_server;
        root /app/{root};
        index index.html;

        location / {{
            try_files $uri $uri/ =404;
        }}
    }}
}}
"""


def static_root(app: App, env: Environment) -> str:
    """Directory served by nginx, relative to the application root."""
    override = env.get_config_variable("STATICFILE_ROOT")
    if override:
        return override.strip().strip("/")
    if app.includes_file("Staticfile"):
        match = _STATICFILE_ROOT.search(app.read_file("Staticfile"))
        if match is not None:
            return match.group(1).strip("/")
    if app.includes_directory("public"):
        return "public"
    return ""


def render_nginx_conf(root: str) -> str:
    return NGINX_CONF_TEMPLATE.format(root=root).replace("/app/;", "/app;")


@dataclass(frozen=True, slots=True)
class StaticfileProvider:
    name: str = "staticfile"

    def detect(self, app: App, env: Environment) -> DetectResult:
        if (
            app.includes_file("Staticfile")
            or app.includes_file("index.html")
            or app.includes_directory("public")
            or env.get_config_variable("STATICFILE_ROOT") is not None
        ):
            return DetectResult.yes(root=static_root(app, env))
        return DetectResult.no()

    def setup(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.setup([Package("nginx")])

    def start(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.start(START_COMMAND)

    def static_assets(
        self, app: App, env: Environment, metadata: ProviderMetadata
    ) -> dict[str, str]:
        return {NGINX_CONF_ASSET: render_nginx_conf(metadata.get("root", ""))}


__all__ = ["NGINX_CONF_ASSET", "StaticfileProvider", "render_nginx_conf", "static_root"]
