import os

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["MAIL_SUPPRESS_SEND"] = "true"
os.environ["MAIL_USERNAME"] = ""
os.environ["PAYPAL_CLIENT_ID"] = ""
os.environ["PAYPAL_CLIENT_SECRET"] = ""
os.environ["PAYPAL_WEBHOOK_ID"] = ""
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_ADMIN_CHAT_IDS"] = ""
os.environ["SMS_API_KEY"] = ""
os.environ["SMS_API_SECRET"] = ""
