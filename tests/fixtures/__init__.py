from .completion import (
    FakeCompletion,
    enrichment_json,
    mcq,
    routed_client,
    topic_quiz_json,
)
from .pages import paragraph, sectioned_page

__all__ = [
    "FakeCompletion",
    "enrichment_json",
    "mcq",
    "paragraph",
    "routed_client",
    "sectioned_page",
    "topic_quiz_json",
]
