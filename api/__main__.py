import os

import uvicorn

from api.main import CONFIG_PATH
from resonote.config_loader import Config


def main() -> None:
    """Run the API with auto-reload for local development."""
    config = Config(str(CONFIG_PATH))
    uvicorn.run(
        "api.main:app",
        host=os.getenv("RESONOTE_HOST", config.server_host),
        port=int(os.getenv("RESONOTE_PORT", config.server_port)),
        reload=True,
    )


if __name__ == "__main__":
    main()
