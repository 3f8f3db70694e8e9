"""
Kindred — Telegram Bot.

A thin chat front end over the contact service: list who is due, log an
interaction, snooze, add contacts and peek at the coming week. Reminders
themselves are delivered by TelegramNotifier through the bot's JobQueue.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
import re
from datetime import time as dt_time, timedelta
from functools import wraps
from typing import Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
)
from telegram.helpers import escape_markdown

from kindred.config import settings
from kindred.core.birthdays import normalize_birthday, validate_birthday
from kindred.core.cadence import CADENCES, CUSTOM, UnknownCadenceError
from kindred.core.clock import DAY_MS, local_date, now_ms
from kindred.core.contact_service import ContactNotFoundError, ContactService, NewContact
from kindred.core.formatting import format_next_reminder
from kindred.core.occurrences import contacts_due_on
from kindred.core.triggers import PROFILES, display_name
from kindred.data.db import INTERACTION_KINDS, ContactDB
from kindred.data.models import NotificationSettings

logger = logging.getLogger(__name__)

_BIRTHDAY_ARG_RE = re.compile(r"^\d{1,2}[/-]\d{1,2}$")

# Local time of the daily job that rebuilds every contact's reminders
DAILY_REFRESH_TIME = dt_time(hour=0, minute=5)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


def _service(context: ContextTypes.DEFAULT_TYPE) -> ContactService:
    return context.bot_data["service"]


def _split_name_and_rest(args: list[str], rest_count: int) -> tuple[str, list[str]]:
    """Names may contain spaces: the trailing ``rest_count`` args are options."""
    if rest_count and len(args) > rest_count:
        return " ".join(args[:-rest_count]), args[-rest_count:]
    return " ".join(args), []


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *Kindred*!\n\n"
        "I remind you to keep in touch with the people who matter.\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/add <name> <cadence> [days] [MM-DD] — Track someone new\n"
        "/due — Who is due for a check-in\n"
        "/done <name> [call|text|meet] — Log that you reached out\n"
        "/snooze <name> <days> — Push a reminder out\n"
        "/week — Reminders for the next 7 days\n"
        "/help — Show this message\n\n"
        f"Cadences: {', '.join(CADENCES)}",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <name> <cadence> [days] [MM-DD]."""
    args = list(context.args or [])
    birthday: str | None = None
    if args and _BIRTHDAY_ARG_RE.match(args[-1]):
        check = validate_birthday(args[-1])
        if not check.valid:
            await update.message.reply_text(f"Invalid birthday '{args[-1]}': {check.error}")
            return
        birthday = normalize_birthday(args.pop())

    custom_days: int | None = None
    if len(args) >= 3 and args[-2] == CUSTOM and args[-1].isdigit():
        name, (cadence, days) = _split_name_and_rest(args, 2)
        custom_days = int(days)
    else:
        name, rest = _split_name_and_rest(args, 1)
        cadence = rest[0] if rest else ""

    if not name or not cadence:
        await update.message.reply_text("Usage: /add <name> <cadence> [days] [MM-DD]")
        return

    try:
        contact = await _service(context).add_contact(
            NewContact(
                name=name,
                cadence=cadence,
                custom_interval_days=custom_days,
                birthday=birthday,
            ),
        )
    except UnknownCadenceError:
        await update.message.reply_text(
            f"Unknown cadence '{cadence}'. Choose one of: {', '.join(CADENCES)}"
        )
        return

    await update.message.reply_text(
        f"Added {display_name(contact.name)} ({contact.cadence}). "
        f"Next reminder: {format_next_reminder(contact.next_reminder_at, now_ms())}."
    )


@authorized_only
async def cmd_due(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /due — list contacts due for a check-in."""
    now = now_ms()
    try:
        due = _service(context).get_due_contacts(now)
    except Exception as exc:
        logger.error("/due error: %s", exc)
        await update.message.reply_text("Couldn't load contacts. Please try again.")
        return

    if not due:
        await update.message.reply_text("Nobody is due right now.")
        return

    lines = ["*Due for a check-in:*\n"]
    for c in due:
        name = escape_markdown(display_name(c.name))
        lines.append(f"• {name} — {format_next_reminder(c.next_reminder_at, now)}")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_done(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <name> [call|text|meet] — log an interaction."""
    args = context.args or []
    kind = "text"
    if args and args[-1].lower() in INTERACTION_KINDS:
        kind = args[-1].lower()
        args = args[:-1]
    name = " ".join(args)
    if not name:
        await update.message.reply_text("Usage: /done <name> [call|text|meet]")
        return

    service = _service(context)
    contact = service.find_by_name(name)
    if contact is None:
        await update.message.reply_text(f"I don't know anyone called '{name}'.")
        return

    updated = await service.log_interaction(contact.id, kind)
    await update.message.reply_text(
        f"Logged a {kind} with {display_name(updated.name)}. "
        f"Next reminder: {format_next_reminder(updated.next_reminder_at, now_ms())}."
    )


@authorized_only
async def cmd_snooze(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /snooze <name> <days>."""
    name, rest = _split_name_and_rest(context.args or [], 1)
    if not name or not rest or not rest[0].isdigit():
        await update.message.reply_text("Usage: /snooze <name> <days>")
        return

    service = _service(context)
    contact = service.find_by_name(name)
    if contact is None:
        await update.message.reply_text(f"I don't know anyone called '{name}'.")
        return

    now = now_ms()
    try:
        updated = await service.snooze_contact(contact.id, now + int(rest[0]) * DAY_MS, now)
    except ContactNotFoundError:
        await update.message.reply_text(f"I don't know anyone called '{name}'.")
        return

    await update.message.reply_text(
        f"Snoozed {display_name(updated.name)}. "
        f"Next reminder: {format_next_reminder(updated.next_reminder_at, now)}."
    )


@authorized_only
async def cmd_week(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /week — agenda for the next 7 days."""
    service = _service(context)
    tz = ZoneInfo(settings.TIMEZONE)
    now = now_ms()
    contacts = service.list_contacts()
    today = local_date(now, tz)

    lines = ["*Next 7 days:*\n"]
    for offset in range(7):
        day = today + timedelta(days=offset)
        due = contacts_due_on(contacts, day, now, tz)
        if due:
            names = ", ".join(escape_markdown(display_name(c.name)) for c in due)
            lines.append(f"{day.strftime('%a %d %b')}: {names}")

    if len(lines) == 1:
        await update.message.reply_text("No reminders in the next 7 days.")
        return
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------


def build_service(app: Application) -> ContactService:
    """Wire the SQLite store and Telegram delivery into a ContactService."""
    from kindred.adapters.telegram_notifier import TelegramNotifier

    tz = ZoneInfo(settings.TIMEZONE)
    owner_chat = settings.ALLOWED_USER_IDS[0] if settings.ALLOWED_USER_IDS else None
    notifier = TelegramNotifier(app.job_queue, chat_id=owner_chat, tz=tz)
    return ContactService(
        store=ContactDB(),
        notifier=notifier,
        preferences=NotificationSettings(
            frequency=settings.NOTIFICATION_FREQUENCY,
            reminder_times=list(settings.REMINDER_TIMES),
        ),
        profile=PROFILES[settings.PLATFORM_PROFILE],
        tz=tz,
        snap_window_ms=settings.SNOOZE_SNAP_WINDOW_HOURS * 60 * 60 * 1000,
    )


async def _on_startup(app: Application) -> None:
    """Job queues are in-memory: re-create every reminder after a restart."""
    service: ContactService = app.bot_data["service"]
    results = await service.apply_preferences(service.preferences)
    logger.info("Startup reschedule complete for %d contact(s)", len(results))


async def _daily_refresh(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Rebuild every reminder so that today's birthdays get today's slots."""
    service: ContactService = context.bot_data["service"]
    try:
        results = await service.apply_preferences(service.preferences)
    except Exception as exc:
        logger.error("Daily reminder refresh failed: %s", exc)
        return
    logger.info("Daily reminder refresh complete for %d contact(s)", len(results))


def _setup_daily_refresh(app: Application) -> None:
    """Register the daily reschedule job in the configured timezone."""
    tz = ZoneInfo(settings.TIMEZONE)
    app.job_queue.run_daily(
        _daily_refresh,
        time=DAILY_REFRESH_TIME.replace(tzinfo=tz),
        name="daily_refresh",
    )
    logger.info(
        "Daily reminder refresh scheduled at %s %s",
        DAILY_REFRESH_TIME.strftime("%H:%M"), settings.TIMEZONE,
    )


def build_app() -> Application:
    """Build and configure the Telegram Application with all handlers."""
    app = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(_on_startup)
        .build()
    )
    app.bot_data["service"] = build_service(app)

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("add", cmd_add))
    app.add_handler(CommandHandler("due", cmd_due))
    app.add_handler(CommandHandler("done", cmd_done))
    app.add_handler(CommandHandler("snooze", cmd_snooze))
    app.add_handler(CommandHandler("week", cmd_week))

    _setup_daily_refresh(app)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Kindred bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
