# src/core/bookings/state_machine.py
from src.common.constants import BookingStatus, CarAvailability


class BookingStateMachine:
    ALLOWED_TRANSITIONS = {
        BookingStatus.PENDING: [BookingStatus.CONFIRMED, BookingStatus.CANCELLED],
        BookingStatus.CONFIRMED: [BookingStatus.COMPLETED, BookingStatus.CANCELLED],
        BookingStatus.CANCELLED: [],
        BookingStatus.COMPLETED: [],
    }

    # Доступность автомобиля после перехода (None - не меняется)
    CAR_AVAILABILITY = {
        BookingStatus.CANCELLED: CarAvailability.AVAILABLE,
        BookingStatus.COMPLETED: CarAvailability.SOLD,
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            curr = BookingStatus(current_status)
            new = BookingStatus(new_status)
            return new in BookingStateMachine.ALLOWED_TRANSITIONS.get(curr, [])
        except ValueError:
            return False

    @staticmethod
    def car_availability_after(new_status: BookingStatus) -> CarAvailability | None:
        return BookingStateMachine.CAR_AVAILABILITY.get(new_status)
