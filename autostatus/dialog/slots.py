"""Slot extraction and keyword matching over free-form user text.

All matching is plain substring search; the vocabularies are Chinese
because that is what the host's users type.
"""

from __future__ import annotations

import re

REPO_URL_RE = re.compile(r"https?://\S+\.release\.git")
TAG_RE = re.compile(r"[a-zA-Z0-9]+-v\d+\.\d+|v\d+\.\d+", re.ASCII)

EXIT_KEYWORDS: tuple[str, ...] = ("退出当前流程",)

DENY_KEYWORDS: tuple[str, ...] = ("不", "不是", "不对", "错误", "不正确")
CONFIRM_KEYWORDS: tuple[str, ...] = ("是", "确认", "对", "没错", "正确", "嗯")

# "the one from before"
PREVIOUS_KEYWORDS: tuple[str, ...] = (
    "刚刚", "刚才", "上次", "上一个", "上一次",
    "之前", "前边", "前面", "先前", "刚才的",
    "上次的", "之前的", "前边的", "前面的",
    "方才", "适才", "刚才能", "方才的", "适才的",
    "最近一次", "上回", "上回的",
)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


def extract_repo_url(text: str) -> str | None:
    match = REPO_URL_RE.search(text)
    return match.group(0) if match else None


def extract_tag(text: str) -> str | None:
    """Find a release tag outside the repository URL.

    The first URL is cut out before searching so version-like fragments
    inside it (e.g. ``.../app-v1.2.release.git``) are never captured.
    """
    remainder = REPO_URL_RE.sub("", text, count=1)
    match = TAG_RE.search(remainder)
    return match.group(0) if match else None


def is_exit_request(text: str) -> bool:
    return _contains_any(text, EXIT_KEYWORDS)


def refers_to_previous(text: str) -> bool:
    return _contains_any(text, PREVIOUS_KEYWORDS)


def is_confirmed(text: str) -> bool:
    """Confirmed only on a confirm keyword with no deny keyword.

    Ambiguous or unrelated replies count as not confirmed. Note that
    "不是" carries both, so it denies.
    """
    return _contains_any(text, CONFIRM_KEYWORDS) and not _contains_any(text, DENY_KEYWORDS)
