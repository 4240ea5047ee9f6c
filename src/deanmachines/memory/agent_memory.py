"""
In-process conversation memory.

Threads are keyed by ``(resource_id, thread_id)``: the resource is the user
(or tenant) a conversation belongs to, the thread is one conversation. Each
thread keeps its messages in order. Retrieval returns the most recent
``last_messages`` of a thread, recall searches every thread of a resource by
keyword overlap.
"""

import re
import typing as t
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger

Message = dict[str, t.Any]

_WORD_RE = re.compile(r"[a-z0-9]+")


def _keywords(text: str) -> set[str]:
    return {word for word in _WORD_RE.findall(text.lower()) if len(word) > 2}


def _text(message: Message) -> str:
    content = message.get("content")
    return content if isinstance(content, str) else ""


@dataclass
class Thread:
    resource_id: str
    thread_id: str
    title: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    messages: list[Message] = field(default_factory=list)


@dataclass(frozen=True)
class RecalledMessage:
    thread_id: str
    message: Message
    score: float


class AgentMemory:
    def __init__(self, last_messages: int = 1000, semantic_top_k: int = 5) -> None:
        if last_messages < 1:
            raise ValueError("last_messages must be at least 1")
        self.last_messages = last_messages
        self.semantic_top_k = semantic_top_k
        self._threads: dict[tuple[str, str], Thread] = {}

    def get_thread(self, resource_id: str, thread_id: str) -> Thread | None:
        return self._threads.get((resource_id, thread_id))

    def create_thread(
        self, resource_id: str, thread_id: str, title: str | None = None
    ) -> Thread:
        if not resource_id or not thread_id:
            raise ValueError("resource_id and thread_id must be non-empty")
        thread = self._threads.get((resource_id, thread_id))
        if thread is None:
            thread = Thread(resource_id=resource_id, thread_id=thread_id, title=title)
            self._threads[(resource_id, thread_id)] = thread
            logger.debug("Created memory thread | resource={} | thread={}", resource_id, thread_id)
        return thread

    def save_messages(
        self, resource_id: str, thread_id: str, messages: t.Sequence[Message]
    ) -> None:
        # only user/assistant turns with text are kept
        kept = [
            {"role": m["role"], "content": _text(m)}
            for m in messages
            if m.get("role") in ("user", "assistant") and _text(m)
        ]
        thread = self.create_thread(resource_id, thread_id)
        thread.messages.extend(kept)
        thread.updated_at = datetime.now(timezone.utc)

    def get_messages(
        self, resource_id: str, thread_id: str, limit: int | None = None
    ) -> list[Message]:
        """The most recent messages of a thread, oldest first."""
        thread = self.get_thread(resource_id, thread_id)
        if thread is None:
            return []
        limit = min(limit or self.last_messages, self.last_messages)
        return [dict(m) for m in thread.messages[-limit:]]

    def recall(
        self, resource_id: str, query: str, top_k: int | None = None
    ) -> list[RecalledMessage]:
        """Messages of the resource sharing the most keywords with the query."""
        query_words = _keywords(query)
        if not query_words:
            return []

        scored: list[RecalledMessage] = []
        for thread in self.list_threads(resource_id):
            for message in thread.messages:
                overlap = query_words & _keywords(_text(message))
                if overlap:
                    scored.append(
                        RecalledMessage(
                            thread_id=thread.thread_id,
                            message=dict(message),
                            score=len(overlap) / len(query_words),
                        )
                    )
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[: top_k or self.semantic_top_k]

    def list_threads(self, resource_id: str) -> list[Thread]:
        threads = [t for (res, _), t in self._threads.items() if res == resource_id]
        return sorted(threads, key=lambda thread: thread.updated_at, reverse=True)

    def clear(self, resource_id: str | None = None, thread_id: str | None = None) -> None:
        """Drop one thread, every thread of a resource, or everything."""
        if resource_id is None:
            self._threads.clear()
            return
        for key in list(self._threads):
            if key[0] == resource_id and (thread_id is None or key[1] == thread_id):
                del self._threads[key]


agent_memory = AgentMemory()
