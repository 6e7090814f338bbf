import os

from dotenv import load_dotenv

from thinkly.cli.commands import app

# Load .env file from ~/.thinkly/ if it exists
# Precedence: existing env vars > .env file (override=False)
load_dotenv(os.path.expanduser("~/.thinkly/.env"), override=False)

if __name__ == "__main__":
    app()
