"""
=============================================================================
LISTENKIT DEMO SERVER
=============================================================================

Runs a small demo application on the standard library's WSGI server so
the envelope, gzip and hooks can be tried with curl.

    python -m listenkit                     # localhost:8080
    python -m listenkit --port 3000 --cors
    python -m listenkit --no-gzip --log-level DEBUG

    curl -s localhost:8080/ping
    curl -s localhost:8080/missing
    curl -s -H 'Accept-Encoding: gzip' localhost:8080/ping | gunzip
    curl -s -d '{"name": "Ada"}' localhost:8080/echo
    printf '{"name": "Ada"}' | gzip | curl -s --data-binary @- \\
         -H 'Content-Encoding: gzip' localhost:8080/echo

=============================================================================
"""

import argparse
import logging
import sys
from wsgiref.simple_server import make_server

from . import __version__
from .body import parse_body_param
from .config import ExtendConfig
from .envelope import RawBytes
from .errors import ConfigError
from .extend import Extender
from .http.request import HTTPRequest
from .http.response import ResponseWriter
from .http.status_codes import HTTPStatus
from .logsetup import setup_logging
from .middleware import AccessLog, CompressionMiddleware, MiddlewarePipeline
from .wsgi import to_wsgi


logger = logging.getLogger("listenkit")


def build_app(config: ExtendConfig, use_gzip: bool = True):
    """
    Build the demo handler: a tiny path switch over extended handlers.

    Routes:
        /ping      success envelope
        /echo      parses the JSON body and returns it
        /raw       raw bytes, no envelope
        anything   404 with the synthesized message
    """
    extender = Extender(config)
    AccessLog(log_format=config.log_format).install(extender)

    @extender.extend
    def ping(request: HTTPRequest):
        return {"pong": True}, HTTPStatus.OK, None

    @extender.extend
    def echo(request: HTTPRequest):
        return parse_body_param(request), HTTPStatus.OK, None

    @extender.extend
    def raw(request: HTTPRequest):
        return RawBytes(b"raw bytes, no envelope\n"), HTTPStatus.OK, None

    @extender.extend
    def missing(request: HTTPRequest):
        return None, HTTPStatus.NOT_FOUND, None

    routes = {"/ping": ping, "/echo": echo, "/raw": raw}

    def dispatch(writer: ResponseWriter, request: HTTPRequest) -> None:
        routes.get(request.path, missing)(writer, request)

    pipeline = MiddlewarePipeline()
    if use_gzip:
        pipeline.add(CompressionMiddleware(
            level=config.gzip_level,
            strict_requests=config.strict_gzip_requests,
        ))
    return pipeline.wrap(dispatch)


def main() -> None:
    """Parse arguments, build the demo app and serve it until Ctrl+C."""
    parser = argparse.ArgumentParser(
        prog="python -m listenkit",
        description="Demo server for the listenkit handler utilities",
    )

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)"
    )
    parser.add_argument(
        "--cors",
        action="store_true",
        help="Enable CORS headers and preflight handling"
    )
    parser.add_argument(
        "--gzip",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable gzip request/response handling (default: on)"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: LISTENKIT_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"listenkit {__version__}"
    )

    args = parser.parse_args()

    # Environment first, command line on top
    try:
        config = ExtendConfig.from_env()
        if args.cors:
            config.enable_cors = True
        if args.log_level:
            config.log_level = args.log_level
        config.validate()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)

    app = to_wsgi(build_app(config, use_gzip=args.gzip))

    with make_server(args.host, args.port, app) as httpd:
        logger.info(f"listenkit demo on http://{args.host}:{args.port} (gzip={'on' if args.gzip else 'off'}, cors={'on' if config.enable_cors else 'off'})")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")


if __name__ == "__main__":
    main()
