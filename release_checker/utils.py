"""Project file handling for Release Checker."""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import BACKUP_SUFFIX, DEFAULT_DATA_DIR, PROJECTS_FILE, RELEASES_FILE
from .errors import ConfigurationError, StoreError
from .logging_config import get_logger
from .models import Project, project_from_dict

logger = get_logger(__name__)

_data_dir: Optional[Path] = None


def set_data_dir(path: Path) -> None:
    """Set a custom data directory path.

    Args:
        path: The data directory path to use.
    """
    global _data_dir
    _data_dir = path


def get_data_dir() -> Path:
    """Get the data directory path."""
    return _data_dir if _data_dir is not None else DEFAULT_DATA_DIR


def get_projects_file() -> Path:
    """Get the projects.json file path."""
    return get_data_dir() / PROJECTS_FILE


def get_releases_file() -> Path:
    """Get the releases.json store path."""
    return get_data_dir() / RELEASES_FILE


def get_backup_file() -> Path:
    """Get the projects backup file path."""
    projects_file = get_projects_file()
    return projects_file.with_name(projects_file.name + BACKUP_SUFFIX)


def ensure_data_dir() -> None:
    """Ensure the data directory exists."""
    get_data_dir().mkdir(parents=True, exist_ok=True)


def _create_backup() -> bool:
    projects_file = get_projects_file()
    if not projects_file.exists():
        return False
    try:
        shutil.copy2(projects_file, get_backup_file())
        return True
    except OSError as e:
        logger.error("Failed to create backup: %s", e)
        return False


def _restore_backup() -> bool:
    backup_file = get_backup_file()
    if not backup_file.exists():
        logger.warning("No backup file found at %s", backup_file)
        return False
    try:
        shutil.copy2(backup_file, get_projects_file())
        logger.info("Restored from backup at %s", backup_file)
        return True
    except OSError as e:
        logger.error("Failed to restore from backup: %s", e)
        return False


def _read_projects(path: Path) -> list[Project]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    projects = [project_from_dict(item) for item in data["projects"]]

    identifiers: set[str] = set()
    for project in projects:
        if project.identifier in identifiers:
            raise ConfigurationError(
                f"Duplicate project identifier in {path}: {project.identifier}",
                identifier=project.identifier,
            )
        identifiers.add(project.identifier)
    return projects


def load_projects() -> list[Project]:
    """Load projects from the JSON file.

    Returns:
        List of Project objects. Returns empty list if file doesn't exist.

    Raises:
        ConfigurationError: If a project entry is invalid or duplicated.
        StoreError: If the file is corrupted and no usable backup exists.
    """
    projects_file = get_projects_file()

    if not projects_file.exists():
        logger.debug("Projects file does not exist, returning empty list")
        return []

    try:
        projects = _read_projects(projects_file)
        logger.debug("Loaded %d projects from %s", len(projects), projects_file)
        return projects
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error("Failed to parse projects file: %s", e)

        if _restore_backup():
            try:
                return _read_projects(projects_file)
            except (ValueError, KeyError, TypeError, AttributeError) as e2:
                raise StoreError(f"Projects backup is corrupted too: {e2}") from e2

        raise StoreError(
            f"Projects file is corrupted and no backup available. "
            f"Manual intervention required at: {projects_file}"
        ) from e


def save_projects(projects: list[Project]) -> None:
    """Save projects to the JSON file with backup.

    Args:
        projects: List of Project objects to save.

    Raises:
        OSError: If file cannot be written.
    """
    ensure_data_dir()
    projects_file = get_projects_file()

    _create_backup()

    data = {
        "projects": [project.to_dict() for project in projects],
        "last_updated": datetime.now().isoformat(),
    }

    temp_file = projects_file.with_suffix(".tmp")

    try:
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        temp_file.replace(projects_file)
        logger.debug("Saved %d projects to %s", len(projects), projects_file)

    except OSError as e:
        logger.error("Failed to save projects: %s", e)
        if temp_file.exists():
            temp_file.unlink()
        raise


def add_project(project: Project) -> bool:
    """Add a new project to the list.

    Args:
        project: Project to add.

    Returns:
        True if added, False if the identifier is already tracked.
    """
    projects = load_projects()

    for existing in projects:
        if existing.identifier == project.identifier:
            logger.warning("Project %s already exists, skipping", project.identifier)
            return False

    projects.append(project)
    save_projects(projects)
    logger.info("Added project: %s", project.identifier)
    return True


def delete_project(identifier: str) -> bool:
    """Delete a project from the list.

    Args:
        identifier: Identifier of the project to delete.

    Returns:
        True if project was deleted, False if not found.
    """
    projects = load_projects()
    remaining = [p for p in projects if p.identifier != identifier]

    if len(remaining) < len(projects):
        save_projects(remaining)
        logger.info("Deleted project: %s", identifier)
        return True

    logger.warning("Project %s not found for deletion", identifier)
    return False


def get_project(identifier: str) -> Optional[Project]:
    """Get a project by its identifier."""
    for project in load_projects():
        if project.identifier == identifier:
            return project
    return None
