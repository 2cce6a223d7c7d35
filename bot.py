# pylint: disable=C0116,C0115,C0114,C0103,R0903
import asyncio
import json
from datetime import datetime
import logging
from os import environ

import pytz
from telegram import Update
from telegram.constants import ChatAction, ParseMode
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

import resolver

logger = logging.getLogger()
logger.setLevel(logging.INFO)

RESOLVER = resolver.TimeResolver()

MARKDOWN_SPECIAL_CHARACTERS = str.maketrans({
    '*': r'\*',
    '_': r'\_',
    '`': r'\`',
    '[': r'\['
})

def escape_md(string):
    return string.translate(MARKDOWN_SPECIAL_CHARACTERS)


def reference_time(timezone_name=None):
    tz = pytz.timezone(timezone_name or environ.get('TIMEZONE_NAME', 'UTC'))
    # the calendar works on naive wall-clock time
    return datetime.now(tz).replace(tzinfo=None)

def answer(saying: str, now: datetime):
    result = RESOLVER.evaluate(now, saying)
    return f"*{escape_md(saying)}*: {escape_md(resolver.describe(result))}"

async def reply_time(update: Update, saying: str):
    await update.effective_chat.send_chat_action(ChatAction.TYPING)
    text = answer(saying, reference_time())
    await update.effective_message.reply_text(
        text,
        do_quote=True,
        parse_mode=ParseMode.MARKDOWN,
        disable_notification=True
    )

async def when_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    saying = ' '.join(context.args).lower()
    if not saying:
        await update.effective_message.reply_text("Usage: /when <time expression>", do_quote=True)
        return
    await reply_time(update, saying)

async def message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE): # pylint: disable=W0613
    saying = update.effective_message.text.strip().lower()
    await reply_time(update, saying)

async def process_event(event):
    data = json.loads(event["body"])
    application = Application.builder().token(environ['TELEGRAM_TOKEN']).build()
    application.add_handler(CommandHandler('when', when_handler))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, message_handler))
    async with application:
        await application.process_update(Update.de_json(data, application.bot))

def webhook(event, context): # pylint: disable=W0613
    try:
        asyncio.run(process_event(event))
        status_code = 200
    except Exception as e: # pylint: disable=W0703
        logger.exception(e)
        status_code = 500
    return {
        'statusCode': status_code
    }
