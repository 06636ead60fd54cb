#!/usr/bin/env python3
"""Gitea release plugin for a release orchestration host.

Given the version tag and changelog computed by the host, creates or updates
the matching Gitea release, uploads configured assets, and publishes the
release URL back into the host context as `releaseUrl`.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Mapping, Optional

import requests
from dotenv import load_dotenv

from clients.gitea_client import GiteaApiError, GiteaClient
from configs.release_config import ConfigurationError, is_enabled, resolve_config
from utils.asset_pipeline import AssetPipeline
from utils.host import LocalHost, ReleaseHost
from utils.release_models import ReleaseConfig, ReleasePayload, ReleaseResponse
from utils.release_text import ExternalModuleError, resolve_release_notes, resolve_release_title

logger = logging.getLogger(__name__)


class GiteaReleasePlugin:
	"""Create-or-update a Gitea release and attach assets."""

	def __init__(
		self,
		host: ReleaseHost,
		options: Optional[Mapping[str, Any]] = None,
		*,
		env: Optional[Mapping[str, str]] = None,
		session: Optional[requests.Session] = None,
		cwd: Optional[str] = None,
	):
		"""Initialize the plugin.

		Args:
			host: Host collaborator supplying context, logging and the dry-run flag
			options: Raw plugin options from the host configuration
			env: Lookup for the token variable (defaults to os.environ, read per call)
			session: Optional requests.Session, mainly for tests
			cwd: Directory asset patterns are resolved against
		"""
		self.host = host
		self.options = dict(options or {})
		self.env = env
		self.session = session
		self.cwd = cwd

	@staticmethod
	def is_enabled(options: Optional[Mapping[str, Any]] = None) -> bool:
		return is_enabled(options)

	@property
	def log(self):
		return self.host.log

	@property
	def config(self) -> ReleaseConfig:
		# Recomputed on every access: the host may fill in repo metadata late.
		return resolve_config(self.options, self.host.get_context("repo"))

	def _client(self, config: Optional[ReleaseConfig] = None) -> GiteaClient:
		return GiteaClient(config or self.config, env=self.env, session=self.session)

	# -------- Release text --------
	def get_release_title(self) -> str:
		return resolve_release_title(self.config.release_title, self.host.get_context())

	def get_release_notes(self) -> str:
		return resolve_release_notes(self.config.release_notes, self.host.get_context())

	# -------- Remote operations --------
	def release_exists(self, tag_name: str, client: Optional[GiteaClient] = None) -> bool:
		"""True if a release exists for `tag_name`; a 404 means it does not."""
		client = client or self._client()
		try:
			client.get_release_by_tag(tag_name)
			return True
		except GiteaApiError as e:
			if e.status == 404:
				return False
			raise

	def create_release(self, payload: ReleasePayload, client: Optional[GiteaClient] = None) -> ReleaseResponse:
		return (client or self._client()).create_release(payload)

	def update_release(self, tag_name: str, payload: ReleasePayload, client: Optional[GiteaClient] = None) -> ReleaseResponse:
		return (client or self._client()).update_release(tag_name, payload)

	def upload_assets(self, release_id: int, client: Optional[GiteaClient] = None) -> None:
		config = self.config
		pipeline = AssetPipeline(client or self._client(config), self.log, cwd=self.cwd)
		pipeline.upload_assets(release_id, list(config.assets))

	# -------- Lifecycle --------
	def release(self) -> None:
		"""Create or update the release for the current tag.

		Raises:
			ConfigurationError: missing host/owner/repository/token
			ExternalModuleError: an `npm:` title/notes provider cannot be used
			GiteaApiError: the forge rejected the lookup, create or update
		"""
		try:
			config = self.config
		except ConfigurationError as e:
			self.log.error(f"❌ Invalid Gitea configuration: {e}")
			raise
		if not config.release:
			self.log.info("Gitea release is disabled")
			return

		tag_name = self.host.get_context("tagName")
		try:
			payload = ReleasePayload(
				tag_name=tag_name,
				name=self.get_release_title(),
				body=self.get_release_notes(),
				draft=config.draft,
				prerelease=config.prerelease,
			)
		except (ExternalModuleError, ValueError) as e:
			self.log.error(f"❌ Failed to prepare Gitea release: {e}")
			raise
		self.log.info(f"Preparing Gitea release: {payload.name}")

		if self.host.is_dry_run:
			self._dry_run(config, payload)
			return

		client = self._client(config)
		try:
			if self.release_exists(tag_name, client):
				self.log.info(f"Release {tag_name} already exists, updating...")
				release = self.update_release(tag_name, payload, client)
			else:
				self.log.info(f"Creating new release {tag_name}...")
				release = self.create_release(payload, client)

			self.log.info(f"✅ Gitea release created: {release.html_url}")

			if config.assets:
				self.upload_assets(release.id, client)

			self.host.set_context("releaseUrl", release.html_url)
		except Exception as e:
			self.log.error(f"❌ Failed to create Gitea release: {e}")
			raise
		finally:
			client.close()

	def _dry_run(self, config: ReleaseConfig, payload: ReleasePayload) -> None:
		self.log.info(
			f"[dry-run] Would create or update release {payload.tag_name} on "
			f"{config.host} ({config.owner}/{config.repository}): {payload.name}"
		)
		self.log.verbose(f"[dry-run] Release payload: {json.dumps(payload.model_dump())}")
		if config.assets:
			AssetPipeline(None, self.log, cwd=self.cwd).describe_uploads(list(config.assets))

	def after_release(self) -> None:
		release_url = self.host.get_context("releaseUrl")
		if release_url:
			self.log.info(f"🎉 Release complete! View it at: {release_url}")


def _load_options(path: Optional[str]) -> Dict[str, Any]:
	if not path:
		return {}
	with open(path, "r", encoding="utf-8") as f:
		data = json.load(f)
	if not isinstance(data, dict):
		raise ConfigurationError(f"Options file {path} must contain a JSON object")
	return data


def main(argv: Optional[list] = None) -> int:
	"""Standalone runner: build a local host context and run one release."""
	parser = argparse.ArgumentParser(description="Create or update a Gitea release")
	parser.add_argument("--tag", required=True, help="Tag name, e.g. v1.2.3")
	parser.add_argument("--version", required=True, dest="release_version", help="Version being released")
	parser.add_argument("--latest-version", default="", help="Previously released version")
	parser.add_argument("--changelog-file", help="File whose contents become ${changelog}")
	parser.add_argument("--name", default="", help="Package name for ${name}")
	parser.add_argument("--branch", default="", help="Branch name for ${branchName}")
	parser.add_argument("--config", help="JSON file with plugin options")
	parser.add_argument("--host", help="Gitea base URL")
	parser.add_argument("--owner", help="Repository owner")
	parser.add_argument("--repository", help="Repository name")
	parser.add_argument("--dry-run", action="store_true", help="Log what would happen without calling the API")
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
	args = parser.parse_args(argv)

	load_dotenv()

	log_level = logging.DEBUG if args.verbose else logging.INFO
	logging.basicConfig(
		level=log_level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
	)
	if not args.verbose:
		logging.getLogger("urllib3").setLevel(logging.WARNING)

	try:
		options = _load_options(args.config)
		for key in ("host", "owner", "repository"):
			if getattr(args, key):
				options[key] = getattr(args, key)
		changelog = ""
		if args.changelog_file:
			with open(args.changelog_file, "r", encoding="utf-8") as f:
				changelog = f.read()
	except (OSError, ValueError, ConfigurationError) as e:
		print(f"Error: {e}", file=sys.stderr)
		return 2

	host = LocalHost(
		context={
			"version": args.release_version,
			"latestVersion": args.latest_version,
			"changelog": changelog,
			"name": args.name,
			"branchName": args.branch,
			"tagName": args.tag,
			"repo": {
				"host": options.get("host", ""),
				"owner": options.get("owner", ""),
				"repository": options.get("repository", ""),
				"project": options.get("repository", ""),
			},
		},
		is_dry_run=args.dry_run,
	)

	if not GiteaReleasePlugin.is_enabled(options):
		host.log.info("Gitea release is disabled")
		return 0

	plugin = GiteaReleasePlugin(host, options, cwd=os.getcwd())
	try:
		plugin.release()
		plugin.after_release()
	except (ConfigurationError, ExternalModuleError) as e:
		print(f"Error: {e}", file=sys.stderr)
		return 2
	except GiteaApiError:
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
