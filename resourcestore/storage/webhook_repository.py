"""
Repository for webhook configurations.

Webhooks are stored as Secrets because they carry the HMAC secret used to
verify inbound deliveries. The secret and the session GitHub token are
encrypted at rest.
"""
import logging
import secrets
from typing import List

from resourcestore.adapters import KIND_SECRET
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import DeliveryRecord, GitHubMatcher, Webhook
from resourcestore.entities.webhook import STATUS_ACTIVE, WEBHOOK_TYPE_GITHUB
from resourcestore.exceptions import WebhookNotFoundError
from resourcestore.filters import ResourceFilter
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository, Store

logger = logging.getLogger(__name__)


def generate_webhook_secret() -> str:
    """Generate a 64-character hex HMAC secret."""
    return secrets.token_hex(32)


def normalize_enterprise_url(url: str) -> str:
    """
    Reduce an enterprise URL to the bare host GitHub sends in X-GitHub-Enterprise-Host.

    "https://GHE.example.com/" and "ghe.example.com" normalize to the same value.
    """
    url = url.strip().rstrip("/").lower()
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            url = url[len(scheme):]
    return url


def match_repository(pattern: str, repository: str) -> bool:
    """Match "owner/name" against an exact pattern or an "owner/*" wildcard."""
    if pattern == repository:
        return True
    if pattern.endswith("/*"):
        owner, sep, _ = repository.partition("/")
        return bool(sep) and owner == pattern[:-2]
    return False


def _transform_github_token(entity, transform) -> None:
    config = entity.session_config
    if config is not None and config.params is not None:
        config.params.github_token = transform(config.params.github_token, "session_config.params.github_token")


def protect_webhook(webhook: Webhook, codec: FieldEncryptionCodec) -> Webhook:
    webhook.secret = codec.encrypt(webhook.secret, "secret")
    _transform_github_token(webhook, codec.encrypt)
    return webhook


def reveal_webhook(webhook: Webhook, codec: FieldEncryptionCodec) -> Webhook:
    webhook.secret = codec.decrypt(webhook.secret, "secret")
    _transform_github_token(webhook, codec.decrypt)
    return webhook


WEBHOOK_DESCRIPTOR = ResourceDescriptor(
    type_name="webhook",
    entity_cls=Webhook,
    name_prefix="agentapi-webhook-",
    data_key="webhook.json",
    not_found=WebhookNotFoundError,
    kind=KIND_SECRET,
    owner_field="user_id",
    index_labels={
        "status": ("status", "status"),
        "type": ("webhook-type", "type"),
    },
    search_fields=("name",),
    team_ids_user_passthrough=True,
    protect=protect_webhook,
    reveal=reveal_webhook,
)


class WebhookRepository(ResourceRepository[Webhook]):
    """Repository for webhook operations."""

    descriptor = WEBHOOK_DESCRIPTOR

    def __init__(self, store: Store, default_github_enterprise_host: str = ""):
        """
        Initialize WebhookRepository.

        Args:
            store: Backend store for webhooks
            default_github_enterprise_host: Host assumed for GitHub webhooks
                that do not name an enterprise URL ("" means github.com)
        """
        super().__init__(store)
        self.default_github_enterprise_host = default_github_enterprise_host

    def create(self, webhook: Webhook) -> None:
        """
        Create a webhook, generating its secret when none was given.

        The generated secret is set on ``webhook`` so the caller can show it once.
        """
        if not webhook.secret:
            webhook.secret = generate_webhook_secret()
        super().create(webhook)

    def find_by_github_repository(self, matcher: GitHubMatcher) -> List[Webhook]:
        """
        Find active GitHub webhooks that may accept an inbound event.

        A webhook matches when its enterprise host equals the matcher's
        (falling back to the default host), the event is in its allowed
        events (if any) and the repository matches one of its allowed
        repositories (if any). Trigger evaluation is left to the caller.

        Args:
            matcher: Repository, enterprise host and event of the delivery

        Returns:
            Matching webhooks, possibly empty
        """
        candidates = self.list(ResourceFilter(type=WEBHOOK_TYPE_GITHUB, status=STATUS_ACTIVE))
        wanted_host = normalize_enterprise_url(matcher.enterprise_url)
        result = []
        for webhook in candidates:
            github = webhook.github
            if github is not None:
                host = github.enterprise_url or self.default_github_enterprise_host
                if normalize_enterprise_url(host) != wanted_host:
                    continue
                if github.allowed_events and matcher.event not in github.allowed_events:
                    continue
                if github.allowed_repositories and not any(
                    match_repository(pattern, matcher.repository) for pattern in github.allowed_repositories
                ):
                    continue
            result.append(webhook)
        logger.debug(f"{len(result)} webhooks match {matcher.repository} ({matcher.event})")
        return result

    def record_delivery(self, webhook_id: str, record: DeliveryRecord) -> Webhook:
        """
        Record the outcome of a delivery on the webhook.

        Args:
            webhook_id: Webhook ID
            record: Delivery outcome

        Returns:
            The updated webhook

        Raises:
            WebhookNotFoundError: No webhook has this ID
        """
        webhook = self.get(webhook_id)
        webhook.record_delivery(record)
        self.update(webhook)
        return webhook
