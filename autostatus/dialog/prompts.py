"""User-facing reply texts for the auto status dialog."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_EXAMPLE_URL = "https://git.ipanel.cn/git/playcube/playcube.release.git"

ASK_BOTH = f"请提供发布仓的地址和发布tag，例如: {_EXAMPLE_URL}   alpha-v1.0"
ASK_REPO_URL = f"请提供发布仓的地址，例如: {_EXAMPLE_URL}"
ASK_TAG = "请提供发布tag，例如: develop-v1.0"
ASK_RESUPPLY = f"好的，请提供新的发布仓地址和tag，例如: {_EXAMPLE_URL}   alpha-v1.0"
NO_HISTORY = "未找到历史查询记录，请提供发布仓地址和tag"
EXITED = "好的，已退出当前流程。"
QUERY_STARTED = "马上帮你查询，请稍候"

# (label shown to the user, key in the backend's data object)
STATUS_FIELDS: tuple[tuple[str, str], ...] = (
    ("Auto名称", "auto名称"),
    ("Buildee名称", "buildee名称"),
    ("Auto启动时间", "auto启动时间"),
    ("健康状况", "健康状况"),
    ("健康持续时长", "健康持续时长"),
    ("健康开始时间", "健康开始时间"),
)


def confirm_previous(repo_url: str, tag: str) -> str:
    return (
        f"请确认发布仓地址和tag是否正确：\n{repo_url}\n{tag}\n"
        '请回复"是"或"确认"继续，或直接输入新的地址和tag进行修改'
    )


def status_summary(repo_url: str, tag: str, info: Mapping[str, Any]) -> str:
    lines = [f"查询 {repo_url} 的 {tag} 成功:"]
    lines.extend(f"- {label}: {info.get(key)}" for label, key in STATUS_FIELDS)
    return "\n".join(lines)


def status_failed(repo_url: str, tag: str, result: str) -> str:
    return f"查询 {repo_url} {tag} 的自动构建状态完成: {result}"


def status_error(repo_url: str, tag: str, message: str) -> str:
    return f"调用接口查询 {repo_url} {tag} 的自动构建状态时出错: {message}"
