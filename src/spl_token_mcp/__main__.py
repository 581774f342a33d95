"""Entry point: python -m spl_token_mcp"""

from .cli import main


if __name__ == "__main__":
    main()
