from __future__ import annotations

from typing import Sequence, Tuple


def paragraph(seed: str, length: int = 400) -> str:
    text = (f"{seed} " * (length // (len(seed) + 1) + 1))[:length]
    return text.strip().ljust(length, "x")


def sectioned_page(sections: Sequence[Tuple[int, str, Sequence[str]]]) -> str:
    """Build markup from (level, heading, paragraphs) triples."""
    body = []
    for level, title, paras in sections:
        body.append(f"<h{level}>{title}</h{level}>")
        body.extend(f"<p>{p}</p>" for p in paras)
    return (
        "<html><head><title>Page</title><script>var x = 1;</script></head>"
        "<body><nav><p>Menu item</p></nav>"
        + "".join(body)
        + "<footer><p>Copyright</p></footer></body></html>"
    )
