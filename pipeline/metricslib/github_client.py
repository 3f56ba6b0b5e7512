from datetime import datetime
from datetime import timezone

import requests


#============================================
class FetchError(RuntimeError):
	"""
	Raised when one GitHub request fails for a reason other than 404.
	"""


#============================================
class RateLimitError(FetchError):
	"""
	Raised when GitHub API rate limits block further requests.
	"""


#============================================
def to_utc_iso(value) -> str | None:
	"""
	Convert datetime-like values to ISO-8601 UTC strings.
	"""
	if value is None:
		return None
	if isinstance(value, str):
		return value
	if isinstance(value, datetime):
		if value.tzinfo is None:
			value = value.replace(tzinfo=timezone.utc)
		return value.astimezone(timezone.utc).isoformat()
	return str(value)


#============================================
class GitHubClient:
	"""
	Thin PyGithub wrapper for the metrics fetch stage.
	"""

	def __init__(self, token: str, log_fn=None, low_remaining_threshold: int = 5):
		self.log_fn = log_fn
		self._low_remaining_threshold = low_remaining_threshold
		self._api_call_count = 0
		self._api_calls_by_context: dict[str, int] = {}
		self._repo_objects: dict[str, object] = {}
		try:
			import github
			from github.GithubException import GithubException
		except ModuleNotFoundError as error:
			raise RuntimeError(
				"Missing dependency: PyGithub. Install it with pip install PyGithub."
			) from error
		self._github_exception_class = GithubException
		self.client = self._build_github_client(github, token)

	#============================================
	def _build_github_client(self, github_module, token: str):
		"""
		Create Github client with retry disabled.
		"""
		if token:
			return github_module.Github(auth=github_module.Auth.Token(token), retry=None)
		return github_module.Github(retry=None)

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def record_api_call(self, context: str) -> None:
		"""
		Track one outbound GitHub API call.
		"""
		self._api_call_count += 1
		if context not in self._api_calls_by_context:
			self._api_calls_by_context[context] = 0
		self._api_calls_by_context[context] += 1

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"api_calls_by_context": dict(self._api_calls_by_context),
		}

	#============================================
	def parse_rate_limit_reset(self, reset_value) -> datetime:
		"""
		Normalize PyGithub reset values to timezone-aware UTC datetime.
		"""
		if isinstance(reset_value, datetime):
			if reset_value.tzinfo is None:
				return reset_value.replace(tzinfo=timezone.utc)
			return reset_value.astimezone(timezone.utc)
		if isinstance(reset_value, (int, float)):
			return datetime.fromtimestamp(float(reset_value), tz=timezone.utc)
		if isinstance(reset_value, str):
			return datetime.fromisoformat(reset_value.replace("Z", "+00:00"))
		raise RuntimeError(f"Unsupported rate-limit reset value: {reset_value!r}")

	#============================================
	def get_core_rate_limit_snapshot(self) -> tuple[int, datetime]:
		"""
		Read core rate-limit remaining/reset across PyGithub versions.
		"""
		self.record_api_call("GET /rate_limit")
		overview = self.client.get_rate_limit()
		rate_limit = getattr(overview, "core", None)
		if rate_limit is None:
			resources = getattr(overview, "resources", None)
			if isinstance(resources, dict):
				rate_limit = resources.get("core")
			elif resources is not None:
				rate_limit = getattr(resources, "core", None)
		if rate_limit is None:
			raise RuntimeError("Rate limit data does not expose core resource fields.")
		remaining = int(getattr(rate_limit, "remaining"))
		reset_time = self.parse_rate_limit_reset(getattr(rate_limit, "reset"))
		return remaining, reset_time

	#============================================
	def log_rate_limit(self, context: str) -> None:
		"""
		Log current rate-limit headroom; never fails the caller.
		"""
		try:
			remaining, reset_time = self.get_core_rate_limit_snapshot()
		except (RuntimeError, self._github_exception_class, requests.RequestException) as error:
			self.log(f"Rate limit check ({context}) unavailable: {error}")
			return
		self.log(
			f"Rate limit check ({context}): remaining={remaining}, "
			+ f"reset_at={reset_time.isoformat()}"
		)
		if remaining <= self._low_remaining_threshold:
			self.log(
				f"Rate limit is low ({remaining}); set GITHUB_TOKEN for higher limits."
			)

	#============================================
	def raise_from_github_error(self, error: Exception, context: str) -> None:
		"""
		Raise RateLimitError for 403 responses and FetchError otherwise.
		"""
		status = getattr(error, "status", None)
		if status == 403:
			raise RateLimitError(
				"GitHub API rate limit exceeded while "
				+ f"{context}. Set GITHUB_TOKEN for higher limits."
			) from error
		raise FetchError(f"GitHub API error while {context}: status={status} {error}") from error

	#============================================
	def get_repo(self, full_name: str):
		"""
		Get one repository object by full name.
		"""
		if full_name in self._repo_objects:
			return self._repo_objects[full_name]
		context = f"GET /repos/{full_name}"
		try:
			self.record_api_call(context)
			repo_obj = self.client.get_repo(full_name)
		except self._github_exception_class as error:
			self.raise_from_github_error(error, f"loading {full_name}")
		except requests.RequestException as error:
			raise FetchError(f"Network error while loading {full_name}: {error}") from error
		self._repo_objects[full_name] = repo_obj
		return repo_obj

	#============================================
	def get_file_text(self, repo_full_name: str, path: str, ref: str) -> str | None:
		"""
		Fetch one file through the contents API and decode its base64 payload.

		Returns None when the file does not exist at that ref.
		"""
		repo_obj = self.get_repo(repo_full_name)
		context = f"GET /repos/{repo_full_name}/contents/{path}"
		try:
			self.record_api_call(context)
			if ref:
				content = repo_obj.get_contents(path, ref=ref)
			else:
				content = repo_obj.get_contents(path)
		except self._github_exception_class as error:
			if getattr(error, "status", None) == 404:
				return None
			self.raise_from_github_error(error, f"fetching {path} for {repo_full_name}")
		except requests.RequestException as error:
			raise FetchError(f"Network error while fetching {path}: {error}") from error
		if isinstance(content, list):
			self.log(f"Skipping directory path: {repo_full_name}/{path}")
			return None
		# files over 1 MB come back with encoding "none" and no inline payload
		encoding = getattr(content, "encoding", "base64")
		if encoding != "base64":
			raise FetchError(
				f"Unsupported content encoding {encoding!r} for {repo_full_name}/{path}"
			)
		return content.decoded_content.decode("utf-8", errors="replace")

	#============================================
	def get_last_commit_date(self, repo_full_name: str, path: str, ref: str) -> str | None:
		"""
		Return ISO timestamp of the newest commit touching path, or None.
		"""
		repo_obj = self.get_repo(repo_full_name)
		context = f"GET /repos/{repo_full_name}/commits"
		try:
			self.record_api_call(context)
			if ref:
				commits = repo_obj.get_commits(sha=ref, path=path)
			else:
				commits = repo_obj.get_commits(path=path)
			for commit_obj in commits:
				committer = commit_obj.commit.committer
				return to_utc_iso(getattr(committer, "date", None))
		except self._github_exception_class as error:
			if getattr(error, "status", None) == 404:
				return None
			self.raise_from_github_error(error, f"listing commits for {path}")
		except requests.RequestException as error:
			raise FetchError(f"Network error while listing commits for {path}: {error}") from error
		return None
