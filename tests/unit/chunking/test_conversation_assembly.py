from __future__ import annotations

from offload_mcp.chunking import PromptStages, build_conversation


def _stages() -> PromptStages:
    return PromptStages(
        system_and_context="You review code.",
        data_payload="ignored",
        output_instructions="List the defects.",
    )


def test_single_chunk_conversation_has_three_messages() -> None:
    conversation = build_conversation(_stages(), ["payload text"])

    messages = [message.to_dict() for message in conversation.messages()]

    assert messages == [
        {"role": "system", "content": "You review code."},
        {"role": "user", "content": "Data to analyze:\n\npayload text"},
        {"role": "user", "content": "List the defects."},
    ]


def test_multi_chunk_conversation_labels_chunks_in_order() -> None:
    conversation = build_conversation(_stages(), ["one", "two", "three"])

    assert [message.content for message in conversation.data_messages] == [
        "Data chunk 1/3:\n\none",
        "Data chunk 2/3:\n\ntwo",
        "Data chunk 3/3:\n\nthree",
    ]
    assert conversation.instruction_message.content == (
        "List the defects.\n\nAnalyze all 3 data chunks provided above."
    )
    assert conversation.messages()[0] is conversation.context_message
    assert conversation.messages()[-1] is conversation.instruction_message


def test_conversation_dict_reports_chunk_count() -> None:
    payload = build_conversation(_stages(), ["one", "two"]).to_dict()

    assert payload["chunk_count"] == 2
    assert payload["context_message"] == {"role": "system", "content": "You review code."}
    assert len(payload["data_messages"]) == 2
