"""
Repository for Slack bot configurations.
"""
from resourcestore.adapters import KIND_SECRET
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Bot
from resourcestore.exceptions import BotNotFoundError
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository


def protect_bot(bot: Bot, codec: FieldEncryptionCodec) -> Bot:
    bot.signing_secret = codec.encrypt(bot.signing_secret, "signing_secret")
    return bot


def reveal_bot(bot: Bot, codec: FieldEncryptionCodec) -> Bot:
    bot.signing_secret = codec.decrypt(bot.signing_secret, "signing_secret")
    return bot


BOT_DESCRIPTOR = ResourceDescriptor(
    type_name="slackbot",
    entity_cls=Bot,
    name_prefix="agentapi-slackbot-",
    data_key="slackbot.json",
    not_found=BotNotFoundError,
    kind=KIND_SECRET,
    owner_field="user_id",
    index_labels={"status": ("status", "status")},
    search_fields=("name",),
    team_ids_user_passthrough=True,
    protect=protect_bot,
    reveal=reveal_bot,
)


class BotRepository(ResourceRepository[Bot]):
    """Repository for bot operations."""

    descriptor = BOT_DESCRIPTOR
