"""Named counters that hand out order ids.

The counter row is read, bumped and saved in the same unit of work as the
order it numbers, so a rolled-back order also rolls back its id and two
committed orders never share one.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from groupbuy.domain import groupbuy

ORDER_SEQUENCE = "orders"


@groupbuy.aggregate
class OrderSequence:
    name = String(identifier=True, max_length=50)
    last_value = Integer(default=0, min_value=0)

    def next_value(self) -> int:
        self.last_value = (self.last_value or 0) + 1
        return self.last_value


def allocate_order_id(name=ORDER_SEQUENCE) -> int:
    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(name)
    except ObjectNotFoundError:
        sequence = OrderSequence(name=name, last_value=0)

    value = sequence.next_value()
    repo.add(sequence)
    return value
