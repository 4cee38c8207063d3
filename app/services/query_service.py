import operator
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.database.dynamodb import EntityStore
from app.exceptions import InvalidQueryError
from app.schemas.conference import (
    Conference,
    ConferenceQueryFilter,
    ConferenceQueryForm,
)
from app.services.conference_service import ConferenceService, conference_from_item

FIELDS = {
    "CITY": "city",
    "TOPIC": "topics",
    "MONTH": "month",
    "MAX_ATTENDEES": "maxAttendees",
}

OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "EQ": operator.eq,
    "GT": operator.gt,
    "GTEQ": operator.ge,
    "LT": operator.lt,
    "LTEQ": operator.le,
    "NE": operator.ne,
}

NUMERIC_FIELDS = {"month", "maxAttendees"}

# Conferences whose city, topic, month and size match the featured listing
FEATURED_QUERY = ConferenceQueryForm(
    filters=[
        ConferenceQueryFilter(field="MAX_ATTENDEES", operator="GT", value=10),
        ConferenceQueryFilter(field="CITY", operator="EQ", value="London"),
        ConferenceQueryFilter(field="TOPIC", operator="EQ", value="Web Technologies"),
        ConferenceQueryFilter(field="MONTH", operator="EQ", value=1),
    ]
)


class ConferenceQueryService:
    def __init__(self, store: EntityStore):
        self.store = store
        self.conference_service = ConferenceService(store)

    def query_conferences(self, form: ConferenceQueryForm) -> List[Conference]:
        """
        Run a filtered listing. Results are ordered by the inequality field
        (when one is present) and then by name.
        """
        inequality_field, filters = self._format_filters(form.filters)

        # Step 1: Choose the partition to read
        strategy = self._choose_best_strategy(filters)

        # Step 2: Read it and apply every filter in memory
        items = self.store.query(
            strategy["pk_attr"], strategy["pk"], index_name=strategy["index"]
        )
        conferences = [conference_from_item(item) for item in items]
        conferences = [c for c in conferences if self._matches_all_filters(c, filters)]

        # Step 3: Sort by the requested orders
        orders = [inequality_field, "name"] if inequality_field else ["name"]
        conferences.sort(key=lambda c: self._sort_key(c, orders))

        self.conference_service.attach_organizer_names(conferences)
        return conferences

    def get_conferences_filtered(self) -> List[Conference]:
        return self.query_conferences(FEATURED_QUERY)

    def _format_filters(
        self, raw_filters: List[ConferenceQueryFilter]
    ) -> Tuple[Optional[str], List[Dict[str, Any]]]:
        """Validate user supplied filters; at most one field may use an inequality"""
        formatted = []
        inequality_field = None

        for raw in raw_filters:
            try:
                field = FIELDS[raw.field]
                op = raw.operator
                compare = OPERATORS[op]
            except KeyError:
                raise InvalidQueryError("Filter contains invalid field or operator.")

            if op != "EQ":
                if inequality_field and inequality_field != field:
                    raise InvalidQueryError(
                        "Inequality filter is allowed on only one field."
                    )
                inequality_field = field

            formatted.append(
                {
                    "field": field,
                    "operator": op,
                    "compare": compare,
                    "value": self._coerce_value(field, raw.value),
                }
            )

        return inequality_field, formatted

    def _coerce_value(self, field: str, value: Any) -> Any:
        if field in NUMERIC_FIELDS:
            try:
                return int(value)
            except (TypeError, ValueError):
                raise InvalidQueryError(f"Filter value for {field} must be an integer")
        return str(value)

    def _choose_best_strategy(self, filters: List[Dict[str, Any]]) -> Dict[str, Any]:
        for f in filters:
            if f["field"] == "city" and f["operator"] == "EQ":
                return {
                    "index": "GSI_ByCity",
                    "pk": f"CITY#{f['value']}",
                    "pk_attr": "GSI_ByCity_PK",
                }

        # No selective index available - read the full listing index
        return {
            "index": "GSI_Conferences",
            "pk": "CONFERENCE",
            "pk_attr": "GSI_Conferences_PK",
        }

    def _matches_all_filters(
        self, conference: Conference, filters: List[Dict[str, Any]]
    ) -> bool:
        for f in filters:
            actual = getattr(conference, f["field"])
            compare = f["compare"]

            # A list property matches when any of its values does
            if isinstance(actual, list):
                if not any(compare(v, f["value"]) for v in actual):
                    return False
            elif not compare(actual, f["value"]):
                return False

        return True

    def _sort_key(self, conference: Conference, orders: List[str]) -> tuple:
        values = []
        for field in orders:
            value = getattr(conference, field)
            if isinstance(value, list):
                value = min(value, default="")
            values.append(value)
        values.append(conference.id)
        return tuple(values)
