"""Instance resolution and federated identifier qualification.

Every call starts by turning its raw input (``name`` or ``name@host``) into an
``InputContext``: which instance to contact and which instance the requested
entity lives on. The context is a value owned by that call and passed down
explicitly; nothing here is stored on the service.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import structlog

from lemmy_service.config.settings import Settings

logger = structlog.get_logger(__name__)

INSTANCE_DELIMITER = "@"


def split_identifier(raw: Optional[str]) -> tuple[str, Optional[str]]:
    """Split ``name@host`` into ``(name, host)``.

    A bare ``name`` yields ``(name, None)``; ``None`` yields ``("", None)``.
    """
    if not raw:
        return "", None
    name, _, instance = raw.partition(INSTANCE_DELIMITER)
    return name, instance or None


def qualify(name: str, instance: Optional[str], default_instance: str) -> str:
    """Append ``@instance`` unless the entity lives on the default instance."""
    if instance and instance != default_instance:
        return f"{name}{INSTANCE_DELIMITER}{instance}"
    return name


def actor_host(actor_id: str) -> str:
    """Origin host of an ActivityPub actor URL."""
    return urlsplit(actor_id).netloc


@dataclass(frozen=True)
class InputContext:
    """Resolved view of one call's input.

    Attributes:
        primary_input_name: The input without any ``@host`` suffix.
        qualified_input_name: ``primary@instance_or_default``, or None when the
            input was empty.
        resolved_instance: Instance taken from the input or hints, None when
            the default applies. Used for qualifying ids.
        connection_instance: Host actually contacted for this call.
        anchor_post_local_id: Post id without its ``@host`` suffix, if any.
        default_instance: Default instance of the deployment.
    """

    primary_input_name: str
    qualified_input_name: Optional[str]
    resolved_instance: Optional[str]
    connection_instance: str
    anchor_post_local_id: Optional[str]
    default_instance: str

    @property
    def base_url(self) -> str:
        return f"https://{self.connection_instance}"

    def qualify(self, name: str, instance: Optional[str]) -> str:
        return qualify(name, instance, self.default_instance)

    def qualify_local(self, name: str) -> str:
        """Qualify an id that is only unique on the instance this call resolved to."""
        return qualify(name, self.resolved_instance, self.default_instance)


class ConnectionResolver:
    """Builds the per-call ``InputContext`` from raw input and hints."""

    def __init__(self, settings: Settings):
        self._default_instance = settings.lemmy_default_instance
        self._read_limited_instance = settings.lemmy_read_limited_instance
        self._alternate_instance = settings.alternate_default_instance

    def resolve(
        self,
        raw_input: Optional[str] = None,
        *,
        post_id: Optional[str] = None,
        group_name: Optional[str] = None,
    ) -> InputContext:
        """Resolve which instance a call addresses.

        Instance priority: the post id's ``@host``, then the group name's,
        then the raw input's, then the configured default.

        Args:
            raw_input: ``name`` or ``name@host`` the call is about.
            post_id: Optional federated post id hint.
            group_name: Optional community name hint.

        Returns:
            A fresh InputContext for this call.
        """
        primary_input_name, input_instance = split_identifier(raw_input)
        anchor_post_local_id, post_instance = split_identifier(post_id)
        _, group_instance = split_identifier(group_name)

        instance = post_instance or group_instance or input_instance
        instance_or_default = instance or self._default_instance

        connection_instance = instance_or_default
        if instance_or_default == self._read_limited_instance:
            connection_instance = self._alternate_instance

        qualified_input_name = (
            f"{primary_input_name}{INSTANCE_DELIMITER}{instance_or_default}"
            if primary_input_name
            else None
        )

        context = InputContext(
            primary_input_name=primary_input_name,
            qualified_input_name=qualified_input_name,
            resolved_instance=instance,
            connection_instance=connection_instance,
            anchor_post_local_id=anchor_post_local_id or None,
            default_instance=self._default_instance,
        )
        logger.debug(
            "lemmy_input_resolved",
            raw_input=raw_input,
            resolved_instance=instance,
            connection_instance=connection_instance,
        )
        return context
