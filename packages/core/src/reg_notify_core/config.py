from __future__ import annotations

import base64
import binascii
import logging
import os
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from reg_notify_core.errors import InvalidClientIdError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://reg-viz-app.herokuapp.com"

PR_COMMENT_BEHAVIORS = ("default", "once", "new")

DEFAULT_CONFIG: dict = {
    "clientId": None,
    "installationId": None,
    "owner": None,
    "repository": None,
    "prComment": True,
    "prCommentBehavior": "default",
    "setCommitStatus": True,
    "customEndpoint": None,
}

CLIENT_ID_ENV = "REG_NOTIFY_CLIENT_ID"


@dataclass(frozen=True)
class NotifierConfig:
    """Connection target and behaviour flags, resolved once at init time."""

    endpoint: str
    owner: str | None
    repository: str | None
    installation_id: str | None
    pr_comment: bool = True
    pr_comment_behavior: str = "default"
    set_commit_status: bool = True

    def target(self) -> dict:
        """The owner/repository/installation block shared by every request body."""
        return {
            "owner": self.owner,
            "repository": self.repository,
            "installationId": self.installation_id,
        }


def load_config(config_path: str = ".reg-notify.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load plugin options by merging (in order of precedence):
      1. Built-in defaults
      2. .reg-notify.yml in the current directory
      3. CLI argument overrides

    The client ID falls back to the REG_NOTIFY_CLIENT_ID environment variable
    so CI can keep it in a secret instead of the committed config file.
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if not config.get("clientId"):
        config["clientId"] = os.environ.get(CLIENT_ID_ENV) or None

    return config


def decode_client_id(client_id: str) -> dict:
    """Decode a compact client ID into repository, installationId and owner.

    The ID is base64 of a raw-deflate stream holding ``<marker>/<repository>/<installationId>/<owner>``.
    """
    try:
        raw = zlib.decompress(base64.b64decode(client_id), -zlib.MAX_WBITS).decode("utf-8")
    except (binascii.Error, zlib.error, UnicodeDecodeError, ValueError, TypeError):
        logger.error("Invalid client ID: %s", client_id)
        raise InvalidClientIdError(client_id)

    parts = raw.split("/")
    if len(parts) != 4:
        logger.error("Invalid client ID: %s", client_id)
        raise InvalidClientIdError(client_id)

    repository, installation_id, owner = parts[1:]
    return {"repository": repository, "installationId": installation_id, "owner": owner}


def resolve_config(options: dict) -> NotifierConfig:
    """Turn raw plugin options into a NotifierConfig.

    ``clientId`` wins over the explicit owner/repository/installationId fields.
    """
    if options.get("clientId"):
        target = decode_client_id(options["clientId"])
    else:
        target = {
            "repository": options.get("repository"),
            "installationId": options.get("installationId"),
            "owner": options.get("owner"),
        }

    behavior = options.get("prCommentBehavior") or "default"
    if behavior not in PR_COMMENT_BEHAVIORS:
        raise ValueError(
            f"Unknown prCommentBehavior: {behavior!r}. Choose one of {', '.join(PR_COMMENT_BEHAVIORS)}."
        )

    endpoint = options.get("customEndpoint") or DEFAULT_ENDPOINT

    return NotifierConfig(
        endpoint=endpoint.rstrip("/"),
        owner=target["owner"],
        repository=target["repository"],
        installation_id=target["installationId"],
        pr_comment=options.get("prComment") is not False,
        pr_comment_behavior=behavior,
        set_commit_status=options.get("setCommitStatus") is not False,
    )
