"""
CORS proxy for the On-Page SEO Advisor.

GET /proxy?url=<target> fetches the target server-side and relays its status,
content type and body, adding permissive CORS headers so a browser client can
read pages from any site.
"""
import logging
from typing import List
from urllib.parse import urlparse

import httpx
from flask import Flask, Response, jsonify, request

from seo_advisor import config

config.configure_logging()
logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'text/html; charset=utf-8'
CORS_METHODS = ['GET', 'OPTIONS']
CORS_ALLOWED_HEADERS = ['Content-Type', 'Authorization', 'Origin', 'X-Requested-With', 'Accept']
CORS_EXPOSED_HEADERS = ['Content-Length', 'X-Content-Type-Options']
CORS_MAX_AGE = 86400


def create_upstream_client() -> httpx.Client:
    return httpx.Client(
        timeout=config.UPSTREAM_TIMEOUT,
        follow_redirects=True,
        max_redirects=config.UPSTREAM_MAX_REDIRECTS,
        verify=config.UPSTREAM_VERIFY_TLS,
        headers=config.BROWSER_HEADERS,
    )


def origin_allowed(origin: str, allowed_origins: List[str]) -> bool:
    return bool(origin) and any(origin.startswith(allowed) for allowed in allowed_origins)


def create_app(client: httpx.Client = None, allowed_origins: List[str] = None) -> Flask:
    """
    Build the proxy application.

    Args:
        client: httpx.Client used for upstream requests (created from config if omitted)
        allowed_origins: Origin prefixes allowed to read responses; '*' allows all
    """
    app = Flask(__name__)
    upstream = client or create_upstream_client()
    origins = allowed_origins if allowed_origins is not None else config.ALLOWED_ORIGINS

    if not origins:
        logger.warning("No allowed origins specified. Browsers will block cross-origin reads.")
    else:
        logger.info(f"Allowed origins: {origins}")

    def error_response(status_code: int, message: str) -> Response:
        logger.error(f"Proxy error {status_code}: {message}")
        response = jsonify({'error': message})
        response.status_code = status_code
        return response

    @app.before_request
    def answer_preflight():
        if request.method == 'OPTIONS':
            logger.info(f"Handling OPTIONS request for {request.path} from origin {request.headers.get('Origin')}")
            return Response(status=204)
        return None

    @app.after_request
    def set_cors_headers(response: Response) -> Response:
        origin = request.headers.get('Origin')
        if '*' in origins:
            response.headers['Access-Control-Allow-Origin'] = origin or '*'
        elif origin_allowed(origin, origins):
            response.headers['Access-Control-Allow-Origin'] = origin
        else:
            logger.warning(f"Non-allowed origin: {origin}. CORS will block this request.")

        response.headers['Access-Control-Allow-Methods'] = ', '.join(CORS_METHODS)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(CORS_ALLOWED_HEADERS)
        response.headers['Access-Control-Allow-Credentials'] = 'true'
        response.headers['Access-Control-Max-Age'] = str(CORS_MAX_AGE)
        response.headers['Access-Control-Expose-Headers'] = ', '.join(CORS_EXPOSED_HEADERS)
        response.headers['Vary'] = 'Origin'
        return response

    @app.route('/proxy', methods=['GET'])
    def proxy():
        target_url = request.args.get('url')
        if not target_url:
            return error_response(400, 'URL parameter is required')

        try:
            parsed = urlparse(target_url)
        except ValueError:
            return error_response(400, 'Invalid URL provided')
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            return error_response(400, 'Invalid URL provided')

        logger.info(f"Proxying {target_url} for origin {request.headers.get('Origin')}")

        try:
            upstream_response = upstream.get(target_url)
        except httpx.TimeoutException as e:
            logger.error(f"Upstream timeout for {target_url}: {e}")
            return error_response(504, 'Request to the target server timed out')
        except httpx.TooManyRedirects as e:
            logger.error(f"Too many redirects for {target_url}: {e}")
            return error_response(502, 'Target server redirected too many times')
        except httpx.RequestError as e:
            logger.error(f"Upstream request failed for {target_url}: {e}")
            return error_response(504, 'No response received from the target server')

        logger.info(
            f"Proxy request successful: status {upstream_response.status_code}, "
            f"{len(upstream_response.content)} bytes from {target_url}"
        )
        return Response(
            upstream_response.content,
            status=upstream_response.status_code,
            content_type=upstream_response.headers.get('content-type') or DEFAULT_CONTENT_TYPE,
        )

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'healthy'})

    return app


app = create_app()

if __name__ == '__main__':
    logger.info(f"Proxy server running on 0.0.0.0:{config.PROXY_PORT}")
    app.run(host='0.0.0.0', port=config.PROXY_PORT)
