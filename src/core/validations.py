import re

# Validates a name with letters, spaces, apostrophes and hyphens
# Example: "Mary-Jane O'Neil"
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:[\s'\-][^\W\d_]+)*$")
NAME_MAX_LENGTH = 50

# At least one lowercase letter, one uppercase letter, one digit and one
# special character, minimum length of 8 characters
# Example: "Passw0rd!"
STRONG_PASSWORD_VALIDATOR = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)

# Password reset token: base36 issue timestamp, hyphen, 8 base36 characters
# Example: "sl2n9c-0k3x7q1z"
RESET_TOKEN_PATTERN = re.compile(r"^[0-9a-z]{1,13}-[0-9a-z]{8}$")
