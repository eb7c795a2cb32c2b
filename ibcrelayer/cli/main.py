"""CLI entrypoint: the fixed set of modules this relayer build ships with."""

from __future__ import annotations

import sys
from typing import List, Optional

from dotenv import load_dotenv

from ibcrelayer.cli.app import execute
from ibcrelayer.core.errors import UsageError
from ibcrelayer.modules import EthereumModule, HDModule, MockProverModule

EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    try:
        return execute(
            EthereumModule(),  # Ethereum chain module
            HDModule(),  # HD signer module
            MockProverModule(),  # Mock prover module
            argv=argv,
        )
    except UsageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
