"""Run the oauthgate example server.

Usage:
    oauthgate --host 127.0.0.1 --port 8080 --template ./my_login.html
"""
import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(
        prog="oauthgate",
        description="Google OAuth login server with proxy-aware callback URLs.",
    )
    parser.add_argument("--host", default="localhost", help="Interface to bind (default: localhost)")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    parser.add_argument(
        "--template",
        default="",
        help="Path to a custom login template (empty for the built-in page)",
    )
    parser.add_argument(
        "--proxy-headers",
        action="store_true",
        help="Let uvicorn rewrite the client address from X-Forwarded-For",
    )
    args = parser.parse_args()

    # Settings read LOGIN_TEMPLATE from the environment when the app is built
    if args.template:
        os.environ["LOGIN_TEMPLATE"] = args.template

    uvicorn.run(
        "oauthgate.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        proxy_headers=args.proxy_headers,
    )


if __name__ == "__main__":
    main()
