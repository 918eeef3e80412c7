from ecura.domain.models import Appointment, Clinic


class FakeNotifier:
    """In-memory test double for the NotifierProtocol protocol.

    Set ``send_error`` to make the next deliveries raise.  After calls,
    inspect ``sent`` to see which appointments were delivered.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[Appointment, Clinic]] = []
        self.attempts: int = 0
        self.closed: bool = False

        self.send_error: Exception | None = None

    async def send_new_appointment(self, appointment: Appointment, clinic: Clinic) -> None:
        self.attempts += 1
        if self.send_error:
            raise self.send_error
        self.sent.append((appointment, clinic))

    async def close(self) -> None:
        self.closed = True
