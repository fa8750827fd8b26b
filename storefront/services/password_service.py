import bcrypt

# bcrypt only looks at the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode('utf-8')[:MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode('utf-8'))
    except ValueError:
        # stored value is not a bcrypt hash
        return False
