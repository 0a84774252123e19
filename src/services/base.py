"""Shared wiring for the store-backed APIs."""

from src.store.base import RemoteStore
from src.store.channel import Channel, PassThroughChannel


class StoreApi:
    """An API over one store, reached through one channel.

    Public methods check their input first, then make one ``over_channel``
    call. Bad input raises ValueError without touching the channel.
    Helpers inside a channel call use ``self.store`` directly, so one API
    call is one channel trip.
    """

    def __init__(self, store: RemoteStore, channel: Channel | None = None) -> None:
        self.store = store
        self.channel = channel or PassThroughChannel()
