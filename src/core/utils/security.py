import asyncio
import re

from passlib.context import CryptContext
from pydantic import EmailStr

from loggers import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,  # 64 MB
    argon2__time_cost=3,
    argon2__parallelism=2,
)


def hash_password(password: str) -> str:
    """
    Hashes the provided password using Argon2 with the configured parameters.

    :param password: The plaintext password as a string.
    :return: The hashed password as a string.
    """
    return pwd_context.hash(password)


async def hash_password_async(password: str) -> str:
    """hash_password off the event loop; argon2 is deliberately slow."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies a text password against a stored hash in a worker thread.

    :param plain_password: The text password provided by the user.
    :param hashed_password: The stored hash.
    :return: True if the passwords match, False otherwise.
    :raises ValueError: The stored hash is malformed or of an unknown scheme.
    """
    return await asyncio.to_thread(pwd_context.verify, plain_password, hashed_password)


def mask_email(email: str | EmailStr) -> str:
    """
    Masks an email address for logs.
    Mask pattern: ab***@cd***
    """
    try:
        email_str = str(email)
        local, domain = email_str.split("@", 1)
        masked_local = (local[:2] + "***") if local else "*****"
        masked_domain = (domain[:2] + "***") if domain else "*****"
        return f"{masked_local}@{masked_domain}"
    except ValueError:
        return "***"


def normalize_email(email: str) -> str:
    """Normalize an email address."""
    return email.strip().lower()


# Password reset links carry the token in the path
RESET_LINK_PATTERN = re.compile(r"/password/reset/[^/?#]+")


def mask_reset_link(url: str) -> str:
    return RESET_LINK_PATTERN.sub("/password/reset/***", url)
