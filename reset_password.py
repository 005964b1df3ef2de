import os
import sys

from dotenv import load_dotenv


def main():
    load_dotenv()
    email = (os.getenv("RESET_EMAIL") or "").strip()
    raw_password = os.getenv("RESET_PASSWORD") or ""

    if not email:
        raise RuntimeError("RESET_EMAIL is required.")
    if len(raw_password) < 6:
        raise RuntimeError("RESET_PASSWORD is required and must be at least 6 characters.")

    # db validates DATABASE_URL on import.
    from db import set_account_password

    try:
        updated = set_account_password(email, raw_password)
    except Exception as e:
        print(f"Password reset failed: {e}", file=sys.stderr)
        sys.exit(1)

    if updated:
        print(f"Password reset successfully for {email}.")
    else:
        print(f"No account found for {email}.")
    return updated


if __name__ == "__main__":
    main()
