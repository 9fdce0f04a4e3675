import logging
import os
import shutil

from ocm_bootstrap.clients.git_client import GitClient
from ocm_bootstrap.errors import (
    CloneFailedError,
    CommitError,
    ErrorList,
    GitError,
    NoGitRepositoryError,
    NoStagedFilesError,
    OperationCancelledError,
    PushError,
    TransientInfraError,
)
from ocm_bootstrap.models import InstallOptions
from ocm_bootstrap.services.sync_reconciliation_service import SyncReconciliationService
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger
from ocm_bootstrap.utils.retry import retry

CLONE_RETRIES = 1


class GitReconciliationService:
    """Keeps the management repository content in line with generated manifests."""

    def __init__(self, git: GitClient, options: InstallOptions, sync: SyncReconciliationService | None = None):
        self.git: GitClient = git
        self.options: InstallOptions = options
        self.sync: SyncReconciliationService | None = sync
        self.logger: logging.Logger = setup_logger("GitReconciliationService")

    def reconcile(self, ctx: RunContext, path: str, content: str, message: str) -> bool:
        """Write content at path in the repository; returns whether a push happened."""
        self.ensure_clone(ctx)
        return self.commit_and_push(ctx, {path: content}, message)

    def ensure_clone(self, ctx: RunContext) -> None:
        try:
            self.git.head()
            return
        except NoGitRepositoryError:
            self.logger.info(f"No working copy in {self.git.path}, cloning {self.options.url}")

        def attempt() -> None:
            self.clean_directory()
            try:
                self.git.clone(self.options.url, self.options.branch)
            except GitError as e:
                raise TransientInfraError(str(e)) from e

        try:
            retry(ctx, CLONE_RETRIES, self.options.clone_retry_delay, attempt)
        except OperationCancelledError:
            raise
        except Exception as e:
            raise CloneFailedError(f"failed to clone repository {self.options.url}: {e}") from e

    def clean_directory(self) -> None:
        """Remove every entry of the working copy directory, keeping the directory itself."""
        os.makedirs(self.git.path, exist_ok=True)
        errors = ErrorList()
        for entry in os.scandir(self.git.path):
            try:
                if entry.is_dir(follow_symlinks=False):
                    shutil.rmtree(entry.path)
                else:
                    os.remove(entry.path)
            except OSError as e:
                errors.add(e)
        if not errors.is_empty():
            raise GitError(f"failed to clean git repository directory: {errors}")

    def commit_and_push(self, ctx: RunContext, files: dict[str, str], message: str) -> bool:
        if self.options.commit_message_appendix:
            message = f"{message}\n\n{self.options.commit_message_appendix}"
        try:
            self.git.commit(self.options.commit_author, message, files)
        except NoStagedFilesError:
            self.logger.info(f"No changes in {', '.join(files)}, skipping push")
            return False
        except GitError as e:
            raise CommitError(f"failed to commit manifests: {e}") from e
        ctx.check()
        try:
            self.git.push()
        except GitError as e:
            raise PushError(f"failed to push manifests: {e}") from e
        return True

    def reconcile_sync(self, ctx: RunContext) -> None:
        """Reconcile the source secret and sync configuration the cluster pulls the repository with."""
        if self.sync is None:
            raise ValueError("no sync reconciliation configured")
        self.sync.reconcile_source_secret(ctx, self.options)
        self.sync.reconcile_sync_config(ctx, self.options, self)
