"""Three-stage conversation assembly: context, data chunks, instructions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class PromptStages:
    """Prompt text split into the three stage inputs."""

    system_and_context: str
    data_payload: str
    output_instructions: str


@dataclass(slots=True, frozen=True)
class Message:
    """One model-input message."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        """Return the wire form `{role, content}`."""
        return {"role": self.role, "content": self.content}


@dataclass(slots=True, frozen=True)
class ChunkedConversation:
    """Context message, one message per data chunk, then the instruction message."""

    context_message: Message
    data_messages: tuple[Message, ...]
    instruction_message: Message

    def messages(self) -> list[Message]:
        """Return every message in send order."""
        return [self.context_message, *self.data_messages, self.instruction_message]

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view."""
        return {
            "context_message": self.context_message.to_dict(),
            "data_messages": [message.to_dict() for message in self.data_messages],
            "instruction_message": self.instruction_message.to_dict(),
            "chunk_count": len(self.data_messages),
        }


def build_conversation(stages: PromptStages, chunks: list[str]) -> ChunkedConversation:
    """Assemble the ordered conversation for `chunks`.

    With more than one chunk every data message carries its 1-based index and
    the total, and the instruction message is told how many chunks to expect.
    `stages.data_payload` is ignored; the chunks replace it.
    """
    total = len(chunks)
    data_messages = tuple(
        Message(role="user", content=_label_chunk(chunk, index, total))
        for index, chunk in enumerate(chunks, start=1)
    )
    instructions = stages.output_instructions
    if total > 1:
        instructions = f"{instructions}\n\nAnalyze all {total} data chunks provided above."
    return ChunkedConversation(
        context_message=Message(role="system", content=stages.system_and_context),
        data_messages=data_messages,
        instruction_message=Message(role="user", content=instructions),
    )


def _label_chunk(chunk: str, index: int, total: int) -> str:
    if total > 1:
        return f"Data chunk {index}/{total}:\n\n{chunk}"
    return f"Data to analyze:\n\n{chunk}"
