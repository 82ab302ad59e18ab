"""
xmltv_url.logrotate - Built-in log rotation

Provides log rotation with a copytruncate strategy to stay compatible with
'tail -f' and other log monitoring tools.
"""

import logging
import logging.handlers
import shutil
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional


class CopyTruncateTimedRotatingFileHandler(logging.handlers.BaseRotatingHandler):
    """
    Timed log rotation handler that uses copytruncate strategy.

    The log file keeps its name: its content is copied to a dated backup and
    the original is truncated in place.
    """

    def __init__(
        self,
        filename: str,
        when: str = "midnight",
        backup_count: int = 7,
        encoding: Optional[str] = None,
    ):
        """
        Initialize the handler.

        Args:
            filename: Log file path
            when: Rotation interval ('midnight', 'daily', 'weekly', 'monthly')
            backup_count: Number of backup files to keep (0 = unlimited)
            encoding: File encoding
        """
        super().__init__(filename, "a", encoding=encoding)

        self.when = when.upper()
        self.backup_count = backup_count

        if self.when == "MIDNIGHT" or self.when == "DAILY":
            self.suffix = "%Y-%m-%d"
            self.period_name = "daily"
        elif self.when == "WEEKLY":
            self.suffix = "%Y-W%U"  # Year-Week (Sunday as first day)
            self.period_name = "weekly"
        elif self.when == "MONTHLY":
            self.suffix = "%Y-%m"
            self.period_name = "monthly"
        else:
            raise ValueError(f"Invalid rotation interval: {when}")

        self.rollover_at = self._compute_next_rollover(time.time())

    def _compute_next_rollover(self, now: float) -> float:
        """Compute the next rollover time."""
        midnight = datetime.fromtimestamp(now).replace(hour=0, minute=0, second=0, microsecond=0)

        if self.period_name == "daily":
            return (midnight + timedelta(days=1)).timestamp()

        if self.period_name == "weekly":
            # weekday() returns 0=Monday, 6=Sunday
            days_until_sunday = (6 - midnight.weekday()) % 7 or 7
            return (midnight + timedelta(days=days_until_sunday)).timestamp()

        if midnight.month == 12:
            return midnight.replace(year=midnight.year + 1, month=1, day=1).timestamp()
        return midnight.replace(month=midnight.month + 1, day=1).timestamp()

    def shouldRollover(self, record) -> bool:
        """Determine if rollover should occur."""
        return time.time() >= self.rollover_at

    def doRollover(self):
        """
        Perform log rotation using copytruncate strategy.

        1. Copy current log to backup file
        2. Truncate current log file
        3. Clean up old backup files
        """
        if self.stream:
            self.stream.close()
            self.stream = None

        try:
            backup_suffix = datetime.fromtimestamp(self.rollover_at - 1).strftime(self.suffix)
            backup_filename = f"{self.baseFilename}.{backup_suffix}"

            # Ensure backup filename is unique
            counter = 1
            original_backup = backup_filename
            while Path(backup_filename).exists():
                backup_filename = f"{original_backup}.{counter}"
                counter += 1

            if Path(self.baseFilename).exists():
                shutil.copy2(self.baseFilename, backup_filename)
                with open(self.baseFilename, "w") as f:
                    f.truncate(0)

            if self.backup_count > 0:
                self._cleanup_old_backups()

            self.rollover_at = self._compute_next_rollover(time.time())

        except OSError as e:
            logging.error("Error during log rotation: %s", str(e))

        if not self.stream:
            self.stream = self._open()

    def _cleanup_old_backups(self):
        """Remove old backup files beyond backup_count."""
        log_dir = Path(self.baseFilename).parent
        log_basename = Path(self.baseFilename).name

        backup_files = []
        for file_path in log_dir.glob(f"{log_basename}.*"):
            if str(file_path) == self.baseFilename:
                continue
            backup_files.append((file_path, file_path.stat().st_mtime))

        # Newest first
        backup_files.sort(key=lambda x: x[1], reverse=True)

        for file_path, _ in backup_files[self.backup_count :]:
            try:
                file_path.unlink()
            except OSError as e:
                logging.warning("Could not remove old log backup %s: %s", file_path.name, str(e))


class LogRotationManager:
    """Creates the file handler matching the retention configuration."""

    WHEN_MAPPING = {"daily": "midnight", "weekly": "weekly", "monthly": "monthly"}

    @staticmethod
    def create_rotating_handler(log_file: Path, retention_config: dict) -> logging.Handler:
        """
        Create log handler based on retention configuration.

        Args:
            log_file: Path to log file
            retention_config: Retention configuration from ConfigManager

        Returns:
            Configured logging handler
        """
        log_file.parent.mkdir(parents=True, exist_ok=True)

        if not retention_config.get("enabled", False):
            return logging.FileHandler(log_file, mode="a", encoding="utf-8")

        when = retention_config.get("interval", "daily").lower()

        return CopyTruncateTimedRotatingFileHandler(
            filename=str(log_file),
            when=LogRotationManager.WHEN_MAPPING.get(when, "midnight"),
            backup_count=retention_config.get("keep_files", 7),
            encoding="utf-8",
        )
