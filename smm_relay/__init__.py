"""HTTP relay for the Medanpedia SMM panel and Telegram order notifications.

Keeps panel credentials and the Telegram bot token on the server while a
public storefront calls the relay.
"""

__version__ = "1.0.0"
