import argparse
import logging
import threading
import webbrowser

import uvicorn
from dotenv import find_dotenv, load_dotenv

from linksaver.config import Settings

HOST = "127.0.0.1"
PORT = 5000


def run_uvicorn(host: str, port: int, log_level: str):
    """
    Run the FastAPI app via uvicorn in this process.
    """
    config = uvicorn.Config(
        "linksaver.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=log_level.lower(),
        reload=False,
    )
    server = uvicorn.Server(config)
    server.run()


def open_browser_once(host: str, port: int):
    url = f"http://{host}:{port}/"
    print(f"[server] Opening {url}")
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        pass


def main():
    # values already in the environment win over .env
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings()
    p = argparse.ArgumentParser(prog="linksaver")
    p.add_argument("--host", default=HOST)
    p.add_argument("--port", type=int, default=PORT)
    p.add_argument("--open-browser", action="store_true")
    args = p.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.open_browser:
        # give uvicorn a moment to boot before opening the browser
        threading.Timer(1.0, open_browser_once, args=(args.host, args.port)).start()

    print(f"[server] LinkSaver starting on http://{args.host}:{args.port}", flush=True)
    try:
        run_uvicorn(args.host, args.port, settings.log_level)
    except KeyboardInterrupt:
        print("\n[server] Shutting down.")


if __name__ == "__main__":
    main()
