"""Text sent to customers and to the admin chat."""

from __future__ import annotations


def welcome(shop_name: str) -> str:
    return (
        f"Hello! I'm the virtual assistant of {shop_name}! 🪒\n\n"
        "To book your appointment I first need a few details.\n"
        "Please tell me your first and last name:"
    )


def ask_name() -> str:
    return "Please tell me your first and last name:"


def ask_time(opening_hour: int, closing_hour: int) -> str:
    return (
        f"Thank you! We are open from {opening_hour}h to {closing_hour}h.\n"
        "Which time would you like to book? (example: 14:30)"
    )


def invalid_time_format() -> str:
    return "Please send a valid time in the HH:MM format (example: 14:30)"


def outside_business_hours(opening_hour: int, closing_hour: int) -> str:
    return (
        f"Sorry, we are only open from {opening_hour}h to {closing_hour}h. "
        "Please choose another time:"
    )


def booking_confirmed(shop_name: str, full_name: str, time: str, cancel_command: str) -> str:
    return (
        f"✅ Great, {full_name}! Your appointment is booked for {time}.\n\n"
        f"See you at {shop_name}!\n"
        f"To cancel your appointment, send /{cancel_command}"
    )


def existing_booking(full_name: str, time: str, cancel_command: str) -> str:
    return (
        f"{full_name}, you already have an appointment booked for {time}.\n"
        f"To cancel it, send /{cancel_command}"
    )


def booking_cancelled(full_name: str, time: str) -> str:
    return f"❌ {full_name}, your appointment for {time} has been cancelled."


def nothing_to_cancel() -> str:
    return "You don't have any appointment to cancel."


def admin_new_booking(summary: str) -> str:
    return f"New appointment:\n\n{summary}"


def admin_cancellation(summary: str) -> str:
    return f"Appointment cancelled:\n\n{summary}"
