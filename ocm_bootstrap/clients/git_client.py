import logging
import os
from urllib.parse import quote, urlsplit, urlunsplit

import git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ocm_bootstrap.errors import GitError, NoGitRepositoryError, NoStagedFilesError

logger = logging.getLogger(__name__)


class GitClient:
    """Working copy of a remote repository stored on disk at `path`."""

    def __init__(
        self,
        path: str,
        username: str | None = None,
        password: str | None = None,
        transport: str = "https",
    ):
        self.path: str = path
        self.username: str | None = username
        self.password: str | None = password
        self.transport: str = transport
        self.branch: str | None = None

    def head(self) -> str:
        """Return the commit the working copy is on.

        Raises NoGitRepositoryError when path holds no repository, GitError
        for any other failure.
        """
        try:
            repo = git.Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NoGitRepositoryError(f"no git repository at {self.path}") from e
        try:
            return repo.head.commit.hexsha
        except ValueError as e:
            raise GitError(f"failed to resolve HEAD of {self.path}: {e}") from e

    def clone(self, url: str, branch: str) -> str:
        if self.password and self.transport != "http" and url.startswith("http://"):
            raise GitError(f"refusing to send credentials over plain HTTP to {url}")
        logger.info(f"Cloning {url} at branch {branch} into {self.path}")
        try:
            repo = git.Repo.clone_from(self._authenticated_url(url), self.path, branch=branch)
        except GitCommandError as e:
            raise GitError(f"failed to clone {url}: {self._redact(str(e))}") from e
        self.branch = branch
        return repo.head.commit.hexsha

    def commit(self, author: str, message: str, files: dict[str, str], email: str = "") -> str:
        """Write files relative to the working copy and commit them.

        Raises NoStagedFilesError when the files leave the tree unchanged.
        """
        repo = self._repo()
        for relative_path, content in files.items():
            target = os.path.join(self.path, relative_path)
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "w") as f:
                f.write(content)
        try:
            repo.index.add(list(files))
            if repo.head.is_valid() and not repo.index.diff(repo.head.commit):
                raise NoStagedFilesError("no staged files")
            signature = git.Actor(author, email)
            commit = repo.index.commit(message, author=signature, committer=signature)
        except GitCommandError as e:
            raise GitError(f"failed to commit: {e}") from e
        logger.info(f"Committed {commit.hexsha[:12]}: {message.splitlines()[0]}")
        return commit.hexsha

    def push(self) -> None:
        repo = self._repo()
        branch = self.branch or repo.active_branch.name
        try:
            results = repo.remote("origin").push(refspec=f"HEAD:refs/heads/{branch}")
        except GitCommandError as e:
            raise GitError(f"failed to push: {self._redact(str(e))}") from e
        for info in results:
            if info.flags & (info.ERROR | info.REJECTED | info.REMOTE_REJECTED | info.REMOTE_FAILURE):
                raise GitError(f"failed to push {info.local_ref}: {info.summary.strip()}")
        logger.info(f"Pushed branch {branch}")

    def _repo(self) -> git.Repo:
        try:
            return git.Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NoGitRepositoryError(f"no git repository at {self.path}") from e

    def _authenticated_url(self, url: str) -> str:
        parts = urlsplit(url)
        if not self.password or parts.scheme not in ("http", "https"):
            return url
        user = quote(self.username or "git", safe="")
        netloc = f"{user}:{quote(self.password, safe='')}@{parts.hostname}"
        if parts.port:
            netloc = f"{netloc}:{parts.port}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    def _redact(self, text: str) -> str:
        if self.password:
            text = text.replace(quote(self.password, safe=""), "***").replace(self.password, "***")
        return text
