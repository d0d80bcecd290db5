import django_filters

from modules.stores.models import Store


class StoreFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    city = django_filters.CharFilter(field_name="city", lookup_expr="iexact")
    is_open = django_filters.BooleanFilter(field_name="is_open")

    class Meta:
        model = Store
        fields = ["name", "category", "city", "is_open"]
