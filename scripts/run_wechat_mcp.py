#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] port={os.environ.get('WECHAT_PORT', '9420')} | cli={os.environ.get('WECHAT_CLI_PATH', 'auto')}",
    file=sys.stderr,
)

from mcp_servers.wechat_devtools.main import main  # noqa: E402

if __name__ == "__main__":
    main()
