#!/usr/bin/env python3
import argparse
import os
import signal
import sys

from ocm_bootstrap.clients.provider_registry import default_provider_registry
from ocm_bootstrap.models import BootstrapOptions
from ocm_bootstrap.models.options import DEFAULT_COMPONENTS
from ocm_bootstrap.services.bootstrap_service import BootstrapService
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Bootstrap OCM components into a management repository and cluster")
    parser.add_argument("--owner", required=True, help="Owner of the management repository")
    parser.add_argument("--repository", required=True, help="Name of the management repository")
    parser.add_argument("--registry", required=True, help="OCI location of the bootstrap component repository")
    parser.add_argument("--provider", default="github", help="Git provider hosting the management repository")
    parser.add_argument("--hostname", default="", help="Hostname of the Git provider")
    parser.add_argument("--personal", action="store_true", help="The owner is a user rather than an organization")
    parser.add_argument("--private", action=argparse.BooleanOptionalAction, default=True, help="Repository visibility")
    parser.add_argument("--branch", default="", help="Default branch of the management repository")
    parser.add_argument("--path", default="", help="Path in the repository the cluster syncs")
    parser.add_argument("--components", nargs="+", default=list(DEFAULT_COMPONENTS), help="Components to install")
    parser.add_argument("--bootstrap-component", default="", help="Name of the bootstrap component")
    parser.add_argument("--bootstrap-version", default="", help="Version constraint of the bootstrap component")
    parser.add_argument("--from-file", default="", help="Install from a component archive")
    parser.add_argument("--kubeconfig", default=os.environ.get("KUBECONFIG", ""), help="Path to the kubeconfig")
    parser.add_argument("--context", default="", help="Kubeconfig context to use")
    parser.add_argument("--interval", type=float, default=0, help="Sync interval in seconds")
    parser.add_argument("--timeout", type=float, default=0, help="Health check timeout in seconds")
    parser.add_argument("--commit-message-appendix", default="", help="Text appended to commit messages")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger = setup_logger("Bootstrap")

    ctx = RunContext()
    signal.signal(signal.SIGTERM, lambda *_: ctx.cancel())

    try:
        options = BootstrapOptions(
            owner=args.owner,
            repository_name=args.repository,
            registry=args.registry,
            token=os.environ.get("GITHUB_TOKEN", ""),
            provider=args.provider,
            hostname=args.hostname,
            visibility="private" if args.private else "public",
            personal=args.personal,
            default_branch=args.branch,
            target=args.path,
            from_file=args.from_file,
            registry_username=os.environ.get("REGISTRY_USERNAME", ""),
            registry_password=os.environ.get("REGISTRY_PASSWORD", ""),
            kubeconfig=args.kubeconfig,
            kube_context=args.context,
            components=tuple(args.components),
            bootstrap_component=args.bootstrap_component,
            bootstrap_version=args.bootstrap_version,
            commit_message_appendix=args.commit_message_appendix,
            interval=args.interval,
            timeout=args.timeout,
        )
        logger.info(f"Starting bootstrap of {args.owner}/{args.repository} from {args.registry}")
        service = BootstrapService(options, default_provider_registry(), ctx=ctx)
        service.run()
        return 0
    except KeyboardInterrupt:
        ctx.cancel()
        logger.error("Bootstrap cancelled")
        return 1
    except Exception as e:
        logger.error(f"Bootstrap failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
