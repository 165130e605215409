"""
Telegram Alert Handler

Logging handler that forwards WARNING+ records (failed sweeps, consensus
errors) to an ops Telegram chat.
"""

import logging
import asyncio
from typing import Optional

import httpx


TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
MAX_BATCH = 10
MAX_MESSAGE_LENGTH = 4000


class TelegramLogHandler(logging.Handler):
    """
    Logging handler that sends batched log records to a Telegram chat.
    Only sends WARNING level and above to avoid spam.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        level: int = logging.WARNING,
        batch_delay_seconds: float = 2.0,
    ):
        super().__init__(level=level)
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.batch_delay_seconds = batch_delay_seconds
        self._queue: list[str] = []
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    def format_record(self, record: logging.LogRecord) -> str:
        msg = self.format(record)
        return (
            f"*{record.levelname}* `{record.name}`\n"
            f"```\n{msg[:1000]}```"
        )

    def emit(self, record: logging.LogRecord):
        # Our own transport errors must not loop back into Telegram
        if record.name.startswith("httpx") or record.name == __name__:
            return

        try:
            self._queue.append(self.format_record(record))

            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return  # No event loop (e.g. CLI scripts); record stays on stdout only

            if self._task is None or self._task.done():
                self._task = loop.create_task(self._send_batch())

        except Exception:
            self.handleError(record)

    async def _send_batch(self):
        """Send queued messages in one request."""
        await asyncio.sleep(self.batch_delay_seconds)

        async with self._lock:
            if not self._queue:
                return

            messages = self._queue[:MAX_BATCH]
            self._queue = self._queue[MAX_BATCH:]

            combined = "\n\n".join(messages)
            if len(combined) > MAX_MESSAGE_LENGTH:
                combined = combined[:MAX_MESSAGE_LENGTH] + "...[truncated]"

            try:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    await client.post(
                        TELEGRAM_API_URL.format(token=self.bot_token),
                        json={
                            "chat_id": self.chat_id,
                            "text": combined,
                            "parse_mode": "Markdown",
                        },
                    )
            except httpx.HTTPError:
                pass  # Alerting is best-effort; logging here would recurse


def setup_telegram_alerts(bot_token: Optional[str], chat_id: Optional[str]) -> bool:
    """
    Attach the Telegram alert handler to the root logger.

    Returns True when alerts were enabled.
    """
    if not bot_token or not chat_id:
        return False

    handler = TelegramLogHandler(bot_token, chat_id, level=logging.WARNING)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.getLogger().addHandler(handler)
    return True
