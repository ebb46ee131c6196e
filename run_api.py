#!/usr/bin/env python
"""
Start the AnnDataAI advisory API with uvicorn.
"""

import argparse
import logging
import os
import sys

import uvicorn

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from anndata_ai.infra.config import get_config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    cfg = get_config()
    parser = argparse.ArgumentParser(
        description="Start the AnnDataAI advisory API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
    python run_api.py                         # default settings from .env
    python run_api.py --port 8080             # listen on port 8080
    python run_api.py --backend huggingface   # use the Hugging Face backend
    python run_api.py --reload                # auto-reload for development
        """
    )

    parser.add_argument(
        '--host',
        type=str,
        default='0.0.0.0',
        help='bind address (default: 0.0.0.0)'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=cfg.fastapi_port,
        help=f'port (default: FASTAPI_PORT or {cfg.fastapi_port})'
    )

    parser.add_argument(
        '--reload',
        action='store_true',
        help='reload on code changes (development only)'
    )

    parser.add_argument(
        '--backend',
        type=str,
        choices=['watsonx', 'huggingface'],
        default=None,
        help=f'text generation backend (default: LLM_BACKEND or {cfg.llm_backend})'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=1,
        help='number of worker processes (default: 1)'
    )

    args = parser.parse_args()

    if args.backend:
        os.environ['LLM_BACKEND'] = args.backend
        get_config.cache_clear()
        cfg = get_config()

    display_host = args.host if args.host != '0.0.0.0' else 'localhost'
    logger.info(f"Starting API server: http://{display_host}:{args.port}")
    logger.info(f"Backend: {cfg.llm_backend}")
    logger.info(f"API prefix: {cfg.api_prefix}")
    logger.info(f"Auto-reload: {args.reload}")
    logger.info(f"Workers: {args.workers}")
    logger.info(f"API docs: http://{display_host}:{args.port}/docs")

    uvicorn.run(
        "anndata_ai.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level="info"
    )


if __name__ == '__main__':
    main()
