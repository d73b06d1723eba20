"""
Famops - Generation Prompt Logger.

Writes every generation prompt and raw model reply to a markdown file for
debugging. Enabled by the famops_log_prompts setting (FAMOPS_LOG_PROMPTS=1)
or the CLI --log-prompts flag.
"""

from datetime import datetime
from pathlib import Path

LOG_PROMPTS = False
LOG_DIR = Path("prompt_logs")

# Session tracking
_session_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Enable or disable prompt logging."""
    global LOG_PROMPTS
    LOG_PROMPTS = enabled
    if enabled:
        LOG_DIR.mkdir(exist_ok=True)


def _get_session_dir() -> Path:
    global _session_id
    if _session_id is None:
        _session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_dir = LOG_DIR / _session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def log_prompt(
    *,
    kind: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response: str | None = None,
    error: str | None = None,
) -> Path | None:
    """
    Log one generation call.

    Returns:
        Path to the log file, or None if logging is disabled
    """
    if not LOG_PROMPTS:
        return None

    global _call_counter
    _call_counter += 1

    filepath = _get_session_dir() / f"{_call_counter:02d}_{kind}.md"

    content = f"""# Generation: {kind}

**Time:** {datetime.now().isoformat()}
**Model:** {model}

---

## System Prompt

```
{system_prompt}
```

## User Prompt

```
{user_prompt}
```

## Response

"""
    if error:
        content += f"**ERROR:** {error}\n"
    elif response:
        content += f"```\n{response}\n```\n"
    else:
        content += "(No response)\n"

    filepath.write_text(content, encoding="utf-8")
    return filepath


def reset_session() -> None:
    """Reset the session (for testing)."""
    global _session_id, _call_counter
    _session_id = None
    _call_counter = 0
