"""
Telegram messaging channel.

Wraps bot.send_message with a timeout and maps every failure to
DeliveryError so the dispatch loops can count it and move on.
"""

import asyncio
import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import (
    AiogramError,
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
)
from aiogram.types import InlineKeyboardMarkup

from app.services.notifications.exceptions import DeliveryError, RecipientUnreachableError

logger = logging.getLogger(__name__)


class TelegramChannel:
    def __init__(self, bot: Bot, timeout: float = 10.0):
        self.bot = bot
        self.timeout = timeout

    async def send(
        self,
        address: int,
        text: str,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
        parse_mode: Optional[str] = "Markdown",
    ):
        """
        Send a message to a Telegram chat.

        Returns:
            aiogram Message on success

        Raises:
            RecipientUnreachableError: bot blocked or chat not found
            DeliveryError: any other API or client error, or timeout
        """
        try:
            return await asyncio.wait_for(
                self.bot.send_message(
                    address,
                    text,
                    reply_markup=reply_markup,
                    parse_mode=parse_mode,
                ),
                timeout=self.timeout,
            )
        except TelegramForbiddenError as e:
            logger.warning(f"SAFE_SEND_FORBIDDEN user={address}")
            raise RecipientUnreachableError(f"Bot blocked by {address}") from e
        except TelegramBadRequest as e:
            if "chat not found" in str(e).lower():
                logger.warning(f"SAFE_SEND_SKIP_CHAT_NOT_FOUND user={address}")
                raise RecipientUnreachableError(f"Chat {address} not found") from e
            raise DeliveryError(f"Bad request for {address}: {e}") from e
        except TelegramAPIError as e:
            raise DeliveryError(f"Telegram API error for {address}: {e}") from e
        except AiogramError as e:
            raise DeliveryError(f"Client error for {address}: {type(e).__name__}: {e}") from e
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"Send to {address} timed out after {self.timeout}s") from e
