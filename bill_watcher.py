#!/usr/bin/env python3
"""
Bill Folder Watcher - Automatic Scanning Demo

Watches a folder for new bill images (JPG/PNG) and sends each one to the
scan-bill API. Successful transfers are filed under the scanned folder,
everything else (unknown status, API errors) goes to the review folder.

Usage:
    python bill_watcher.py --watch-folder ./bills-incoming
"""

import argparse
import time
import requests
from pathlib import Path
from datetime import datetime
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import json
from loguru import logger
from src.core.logging import setup_logging

# Configuration
API_BASE_URL = "http://127.0.0.1:8000"
SCAN_ENDPOINT = "/api/transactions/scan-bill"
STATUS_SUCCESS = "Thành công"

CONTENT_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}


class BillHandler(FileSystemEventHandler):
    """Handles new bill image events"""

    def __init__(self, watch_folder, scanned_folder, review_folder, api_base_url=API_BASE_URL):
        self.watch_folder = Path(watch_folder)
        self.scanned_folder = Path(scanned_folder)
        self.review_folder = Path(review_folder)
        self.api_base_url = api_base_url.rstrip("/")
        self.processed_files = set()

        # Create folders if they don't exist
        self.scanned_folder.mkdir(parents=True, exist_ok=True)
        self.review_folder.mkdir(parents=True, exist_ok=True)

    def on_created(self, event):
        """Called when a file is created in the watched folder"""
        if event.is_directory:
            return

        file_path = Path(event.src_path)

        if file_path.suffix.lower() not in CONTENT_TYPES:
            return

        # Avoid scanning the same file multiple times
        if file_path in self.processed_files:
            return

        # Small delay to ensure file is fully written
        time.sleep(1)

        # Check if file still exists (might have been moved)
        if not file_path.exists():
            return

        self.processed_files.add(file_path)
        self.process_bill(file_path)

    def process_bill(self, file_path: Path):
        """Send a bill image through the scan API"""
        logger.info("New bill detected", filename=file_path.name, size_bytes=file_path.stat().st_size)

        try:
            content_type = CONTENT_TYPES[file_path.suffix.lower()]
            with open(file_path, 'rb') as f:
                files = {'file': (file_path.name, f, content_type)}
                response = requests.post(
                    f"{self.api_base_url}{SCAN_ENDPOINT}",
                    files=files,
                    timeout=120
                )

            if response.status_code == 200:
                self.handle_success(file_path, response.json())
            else:
                logger.error("Scan API error", status_code=response.status_code, body=response.text)
                self.handle_error(file_path, f"API returned {response.status_code}")

        except requests.exceptions.Timeout:
            logger.error("Scan request timed out", filename=file_path.name)
            self.handle_error(file_path, "Timeout")
        except requests.exceptions.RequestException as e:
            logger.error("Scan request failed", error=str(e))
            self.handle_error(file_path, str(e))

    def handle_success(self, file_path: Path, bill: dict) -> Path:
        """File a scanned bill by its transfer status"""
        logger.info(
            "Bill scanned",
            filename=file_path.name,
            amount=bill.get("amount"),
            recipient=bill.get("recipientName"),
            account=bill.get("accountNumber"),
            bank=bill.get("bankName"),
            status=bill.get("status"),
        )

        if bill.get('status') == STATUS_SUCCESS:
            destination = self.scanned_folder
            prefix = "OK"
        else:
            destination = self.review_folder
            prefix = "REVIEW"

        dest_path = destination / f"{prefix}_{file_path.name}"
        file_path.rename(dest_path)
        logger.info("Bill filed", destination=str(dest_path))

        self.log_processing(file_path.name, bill, dest_path)
        return dest_path

    def handle_error(self, file_path: Path, error_msg: str) -> Path:
        """Handle scan error"""
        logger.warning("Scan failed, moving bill to review", filename=file_path.name, reason=error_msg)

        # Move to review for manual handling
        dest_path = self.review_folder / f"ERROR_{file_path.name}"
        file_path.rename(dest_path)
        return dest_path

    def log_processing(self, filename: str, bill: dict, dest_path: Path):
        """Append scan results to scan_log.json next to the watch folder"""
        log_file = self.watch_folder.parent / "scan_log.json"

        if log_file.exists():
            with open(log_file, 'r', encoding='utf-8') as f:
                log_data = json.load(f)
        else:
            log_data = []

        log_data.append({
            "timestamp": datetime.now().isoformat(),
            "filename": filename,
            "status": bill.get('status'),
            "bill": bill,
            "destination": str(dest_path)
        })

        with open(log_file, 'w', encoding='utf-8') as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False)


def main():
    parser = argparse.ArgumentParser(
        description='Watch a folder for bill images and scan them automatically'
    )
    parser.add_argument(
        '--watch-folder',
        default='./bills-incoming',
        help='Folder to watch for new bills (default: ./bills-incoming)'
    )
    parser.add_argument(
        '--scanned-folder',
        default='./bills-scanned',
        help='Folder for confirmed transfers (default: ./bills-scanned)'
    )
    parser.add_argument(
        '--review-folder',
        default='./bills-review',
        help='Folder for bills needing review (default: ./bills-review)'
    )
    parser.add_argument(
        '--api-url',
        default=API_BASE_URL,
        help=f'API base URL (default: {API_BASE_URL})'
    )

    args = parser.parse_args()
    setup_logging()

    watch_folder = Path(args.watch_folder)
    watch_folder.mkdir(exist_ok=True)

    event_handler = BillHandler(
        args.watch_folder,
        args.scanned_folder,
        args.review_folder,
        api_base_url=args.api_url
    )
    observer = Observer()
    observer.schedule(event_handler, str(watch_folder), recursive=False)
    observer.start()

    logger.info(
        "Bill watcher started",
        watching=str(watch_folder.absolute()),
        scanned=str(Path(args.scanned_folder).absolute()),
        review=str(Path(args.review_folder).absolute()),
        api=f"{args.api_url}{SCAN_ENDPOINT}",
    )
    print("Drop JPG/PNG bills into the watch folder to scan them. Press Ctrl+C to stop.")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
        observer.stop()

    observer.join()
    logger.info("Watcher stopped")


if __name__ == "__main__":
    main()
