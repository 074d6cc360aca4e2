from hiretrack.services.record_store import RecordStore

_TITLES = {
    "job": "Job Status Updated",
    "candidate": "Candidate Status Updated",
}


class Notifier:
    """Writes in-app notifications; outbound delivery happens elsewhere."""

    def __init__(self, store: RecordStore):
        self.store = store

    def status_changed(self, tenant_id: str, user_id: str, entity: str, record, new_status: str):
        label = record.title if entity == "job" else record.full_name
        self.store.create_notification(
            tenant_id,
            user_id,
            type="status_change",
            title=_TITLES[entity],
            message=f'{entity.capitalize()} "{label}" status changed to {new_status}',
            related_type=entity,
            related_id=record.id,
        )
