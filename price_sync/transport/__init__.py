"""Price feed transmission"""

from .publisher import BlobArchive, TopicPublisher, PriceTransmitter, TransmissionOutcome

__all__ = [
    'BlobArchive',
    'TopicPublisher',
    'PriceTransmitter',
    'TransmissionOutcome'
]
