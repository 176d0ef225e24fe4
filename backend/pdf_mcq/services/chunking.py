"""
Sentence-respecting chunking of extracted text for MCQ generation.
Chunk order is sentence order; the session delivers chunks in this order.
"""
import re

# Target ~2000 chars per chunk so one chunk fits the prompt with room for the instructions.
DEFAULT_MAX_LENGTH = 2000

# Terminators are dropped; runs like "?!" or "..." count as one boundary.
_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def split_sentences(text: str) -> list[str]:
    """Split on ., ! and ?; return trimmed, non-empty sentences without their terminators."""
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def chunk_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> list[str]:
    """
    Pack whole sentences (space-joined) into chunks of at most max_length chars.
    A sentence longer than max_length is not split; it becomes its own oversized chunk.
    """
    if max_length < 1:
        raise ValueError("max_length must be a positive integer")
    chunks: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        candidate_len = len(current) + 1 + len(sentence) if current else len(sentence)
        if current and candidate_len > max_length:
            chunks.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        chunks.append(current)
    return chunks
