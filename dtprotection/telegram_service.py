"""
Telegram notifications for staff
Posts new booking requests and status changes to the operations chats
"""
import logging
from html import escape
from typing import Optional
from telegram import Bot
from telegram.error import TelegramError

from . import config
from .billing import format_currency
from .email_service import format_date, service_title

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Send Telegram notifications to staff chats"""

    def __init__(self, bot_token: Optional[str] = config.TELEGRAM_BOT_TOKEN, chat_ids: str = config.TELEGRAM_ADMIN_CHAT_IDS):
        self.bot_token = bot_token
        self.admin_chat_ids = self._parse_chat_ids(chat_ids)
        self.bot = None

        if self.bot_token:
            self.bot = Bot(token=self.bot_token)
            logger.info("✅ Telegram bot initialised")
        else:
            logger.warning("⚠️ TELEGRAM_BOT_TOKEN not set, staff notifications disabled")

    @staticmethod
    def _parse_chat_ids(chat_ids_str: str) -> list:
        """Comma separated chat ids"""
        if not chat_ids_str:
            return []
        return [int(chat_id.strip()) for chat_id in chat_ids_str.split(",") if chat_id.strip()]

    async def _broadcast(self, message: str) -> bool:
        if not self.bot or not self.admin_chat_ids:
            logger.warning("Telegram bot not configured or no staff chats to notify")
            return False

        success_count = 0
        for chat_id in self.admin_chat_ids:
            try:
                await self.bot.send_message(
                    chat_id=chat_id,
                    text=message,
                    parse_mode="HTML"
                )
                success_count += 1
                logger.info(f"✅ Notification sent to chat {chat_id}")
            except TelegramError as e:
                logger.error(f"❌ Failed to notify chat {chat_id}: {e}")

        return success_count > 0

    async def send_new_booking_notification(self, booking) -> bool:
        """New booking request from the public form"""
        time_range = ""
        if booking.start_time and booking.end_time:
            time_range = f"\n🕐 <b>Time:</b> {booking.start_time} - {booking.end_time}"
        total = format_currency(booking.payment.total_amount) if booking.payment else "n/a"

        message = f"""
🛡 <b>New booking request</b>

📋 <b>Service:</b> {escape(service_title(booking.service_type))}
📅 <b>Date:</b> {format_date(booking.date)}{time_range}
📍 <b>Venue:</b> {escape(booking.venue_address or 'To be confirmed')}
👮 <b>Guards:</b> {booking.number_of_guards or 'n/a'}

👤 <b>Client:</b> {escape(booking.client_name)}
📞 <b>Phone:</b> <code>{escape(booking.phone)}</code>
✉️ <b>Email:</b> {escape(booking.email)}

💵 <b>Quote:</b> {total}
🆔 Booking <code>{booking.id}</code>
"""
        return await self._broadcast(message)

    async def send_status_change_notification(self, booking, old_status: str, admin_username: str) -> bool:
        message = f"""
🔄 <b>Booking status changed</b>

👤 <b>Client:</b> {escape(booking.client_name)}
📅 <b>Date:</b> {format_date(booking.date)}
📌 {old_status} → <b>{booking.status}</b>
🧑‍💼 by {escape(admin_username)}

🆔 Booking <code>{booking.id}</code>
"""
        return await self._broadcast(message)

    async def send_test_message(self, chat_id: int) -> bool:
        if not self.bot:
            return False

        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=f"✅ <b>Test message</b>\n\nTelegram notifications for {escape(config.COMPANY_NAME)} are working.",
                parse_mode="HTML"
            )
            logger.info(f"✅ Test message sent to chat {chat_id}")
            return True
        except TelegramError as e:
            logger.error(f"❌ Failed to send test message: {e}")
            return False


# Global instance
telegram_notifier = TelegramNotifier()
