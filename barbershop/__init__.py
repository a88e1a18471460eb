"""Telegram booking assistant for a barbershop."""
