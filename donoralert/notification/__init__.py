"""Urgent alert delivery.

Composes one SMS body per broadcast, fans it out to every matching donor
through a :class:`~donoralert.notification.transport.TransportGateway`,
aggregates per-recipient outcomes into a delivery report, and prunes
donors whose numbers the transport reports as permanently invalid.
"""
