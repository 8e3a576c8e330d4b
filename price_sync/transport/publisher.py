"""Transmission of resolved price feeds.

A feed is archived as a JSON document, a stage record pointing at the
archive is written to the audit log, and the stage message is published to
the downstream topic.
"""

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import requests

from ..config import PriceParams
from ..core.exceptions import TransmissionError
from ..core.models import StageMessage, records_to_dicts
from ..utils.audit_logger import PricingAuditLogger

logger = logging.getLogger(__name__)


class BlobArchive:
    """Archive store laid out as <root>/<container>/<transaction id>.json"""

    def __init__(self, root_directory: str = "price_archive"):
        self.root = Path(root_directory)

    def upload(self, content: str, transaction_id: str, container: str) -> str:
        target_dir = self.root / container
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"{transaction_id}.json"
        target.write_text(content)
        return target.resolve().as_uri()


class TopicPublisher:
    """Posts stage messages to a topic over HTTP"""

    def __init__(self, endpoint_url: str, access_token: Optional[str] = None, timeout: int = 30):
        self.endpoint_url = endpoint_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        if access_token:
            self.session.headers['Authorization'] = f"Bearer {access_token}"

    def publish(self, message: Dict[str, Any], topic_name: str,
                properties: Optional[Dict[str, str]] = None):
        url = f"{self.endpoint_url}/{topic_name}/messages"
        try:
            response = self.session.post(
                url,
                json={'Body': message, 'Properties': properties or {}},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Publishing to topic {topic_name} failed: {str(e)}")
            raise TransmissionError(f"Publishing to topic {topic_name} failed: {e}") from e


@dataclass
class TransmissionOutcome:
    transaction_id: str
    blob_uri: str
    record_count: int
    published: bool = True


class PriceTransmitter:
    """Archive, audit and publish one resolved price feed"""

    def __init__(self, archive: BlobArchive, publisher: TopicPublisher,
                 audit_logger: PricingAuditLogger):
        self.archive = archive
        self.publisher = publisher
        self.audit_logger = audit_logger

    def transmit(self, records: List[Any], params: PriceParams,
                 transaction_id: Optional[str] = None) -> TransmissionOutcome:
        feed_type = params.promotion_type.value
        stage = StageMessage(
            transaction_id=transaction_id or str(uuid.uuid4()),
            step_name=params.file_name
        )
        content = json.dumps({'Prices': records_to_dicts(records)})

        try:
            logger.info(f"Uploading original message ({feed_type} prices) to archive storage...")
            blob_uri = self.archive.upload(content, stage.transaction_id, params.archive_container)

            logger.info(f"Logging success stage message ({feed_type} prices)...")
            self.audit_logger.log_success(stage, blob_uri)

            logger.info(f"Pushing stage message ({feed_type} prices) to topic {params.topic_name}...")
            stage.properties = {'FILENAME': f"{params.file_name}.json"}
            self.publisher.publish(stage.to_dict(), params.topic_name, stage.properties)
            logger.info(f"Pushed stage message ({feed_type} prices).")

        except Exception as e:
            logger.error(f"Transmission of {feed_type} prices failed: {e}")
            self.audit_logger.log_error(stage, e)
            if isinstance(e, TransmissionError):
                raise
            raise TransmissionError(f"Transmission of {feed_type} prices failed: {e}") from e

        return TransmissionOutcome(
            transaction_id=stage.transaction_id,
            blob_uri=blob_uri,
            record_count=len(records)
        )
