"""Fixed channel layout of an archive."""

from dataclasses import dataclass

from archivist.platform.base import (
    CREATE_PUBLIC_THREADS,
    MANAGE_MESSAGES,
    MANAGE_THREADS,
    READ_MESSAGE_HISTORY,
    SEND_MESSAGES,
    VIEW_CHANNEL,
    Overwrite,
)

FORUM_CHANNEL = "forum"
NOTES_CHANNEL = "working-notes"


@dataclass(frozen=True)
class TopicChannel:
    name: str
    description: str


TOPIC_CHANNELS: tuple[TopicChannel, ...] = (
    TopicChannel("block-examples", "Block-related code examples"),
    TopicChannel("block-projects", "Block-related projects"),
    TopicChannel("command-example", "Command code examples"),
    TopicChannel("command-projects", "Command projects"),
    TopicChannel("entity-examples", "Entity-related code examples"),
    TopicChannel("entity-projects", "Entity-related projects"),
    TopicChannel("item-examples", "Item-related code examples"),
    TopicChannel("item-projects", "Item-related projects"),
    TopicChannel("misc-examples", "Miscellaneous code examples"),
    TopicChannel("misc-projects", "Miscellaneous projects"),
    TopicChannel("particles-examples", "Particle-related code examples"),
    TopicChannel("particles-projects", "Particle-related projects"),
    TopicChannel("javascript-examples", "JavaScript code examples"),
    TopicChannel("javascript-functional", "Functional JavaScript code"),
    TopicChannel("javascript-projects", "JavaScript projects"),
    TopicChannel("sound_effects", "Sound effect examples"),
    TopicChannel("music-assets", "Music and audio assets"),
)

POSTING = (SEND_MESSAGES, CREATE_PUBLIC_THREADS)


def category_name(archive_name: str, suffix: str) -> str:
    return f"{archive_name}{suffix}"


def archive_name_from_category(category: str, suffix: str) -> str | None:
    if not category.endswith(suffix) or len(category) == len(suffix):
        return None
    return category[: -len(suffix)]


def category_overwrites() -> list[Overwrite]:
    return [Overwrite.everyone(allow=(VIEW_CHANNEL, READ_MESSAGE_HISTORY))]


def topic_overwrites(author_id: str) -> list[Overwrite]:
    return [
        Overwrite.everyone(allow=(VIEW_CHANNEL,), deny=(SEND_MESSAGES,)),
        Overwrite.member(
            author_id,
            allow=(SEND_MESSAGES, MANAGE_THREADS, CREATE_PUBLIC_THREADS, MANAGE_MESSAGES),
        ),
    ]


def notes_overwrites(author_id: str) -> list[Overwrite]:
    return [
        Overwrite.everyone(deny=(VIEW_CHANNEL,)),
        Overwrite.member(author_id, allow=(VIEW_CHANNEL, SEND_MESSAGES, MANAGE_THREADS)),
    ]


def forum_topic(archive_name: str, suffix: str) -> str:
    return f"General discussion and questions for {category_name(archive_name, suffix)}"


def notes_topic(archive_name: str, suffix: str) -> str:
    return f"Private working notes for {category_name(archive_name, suffix)}"
