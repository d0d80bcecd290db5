import django_filters

from modules.errands.models import Errand


class ErrandFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    customer = django_filters.NumberFilter(field_name="customer_id")
    runner = django_filters.NumberFilter(field_name="runner_id")
    category = django_filters.UUIDFilter(field_name="category_id")
    unassigned = django_filters.BooleanFilter(field_name="runner", lookup_expr="isnull")
    is_asap = django_filters.BooleanFilter(field_name="is_asap")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Errand
        fields = [
            "status",
            "customer",
            "runner",
            "category",
            "unassigned",
            "is_asap",
            "start_date",
            "end_date",
        ]
