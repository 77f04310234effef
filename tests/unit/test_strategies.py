"""
Unit tests for the bucketing strategies, run through MetricAggregator
over entities built in code.
"""

from datetime import date, datetime, timezone

import pytest

from export_insights.core.aggregation import MetricAggregator
from export_insights.core.models import Address, Customer, LineItem, Order, ReportConfig


def ts(day: str, hour: int = 12) -> datetime:
    return datetime.fromisoformat(day).replace(hour=hour, tzinfo=timezone.utc)


def customer(number, orders=(), address=None, email=None) -> Customer:
    return Customer(
        id=f"gid://shopify/Customer/{number}",
        email=email,
        address=address,
        orders=list(orders),
    )


def order(number, day=None, total=0.0, **fields) -> Order:
    return Order(
        id=f"gid://shopify/Order/{number}",
        created_at=ts(day) if day else None,
        total_price=total,
        **fields,
    )


def run(report_type, roots, config=None):
    aggregator = MetricAggregator(report_type, config or ReportConfig(as_of=date(2025, 6, 30)))
    return aggregator.aggregate({root.id: root for root in roots})


@pytest.mark.unit
class TestCohortStrategy:
    """Tests for the cohort report"""

    def test_first_month_cohort(self):
        """Test two customers first buying on the same day share one period-0 row"""
        roots = [
            customer(1, [order(1, "2025-04-29", 33774.00)]),
            customer(2, [order(2, "2025-04-29", 3964.83), order(3, "2025-04-30", 2971.00)]),
        ]

        result = run("cohort", roots)

        assert len(result.rows) == 1
        row = result.rows[0]
        assert row["cohort"] == "2025-04"
        assert row["periods_since_first_purchase"] == 0
        assert row["Total_customers"] == 2
        assert row["Total_orders"] == 3
        assert row["Total_total_sales"] == pytest.approx(40709.83, abs=0.01)
        assert row["Customer_retention"] == 0.0

    def test_retention_against_period_zero(self):
        """Test later periods divide distinct buyers by the cohort size"""
        roots = [
            customer(1, [order(1, "2025-01-10", 10), order(2, "2025-02-10", 10), order(3, "2025-03-05", 10)]),
            customer(2, [order(4, "2025-01-20", 10), order(5, "2025-03-20", 10)]),
            customer(3, [order(6, "2025-01-31", 10)]),
            customer(4, [order(7, "2025-02-01", 10)]),
        ]

        rows = {(r["cohort"], r["periods_since_first_purchase"]): r for r in run("cohort", roots).rows}

        assert rows[("2025-01", 0)]["Total_customers"] == 3
        assert rows[("2025-01", 1)]["Customer_retention"] == pytest.approx(0.3333)
        assert rows[("2025-01", 2)]["Customer_retention"] == pytest.approx(0.6667)
        assert rows[("2025-02", 0)]["Total_customers"] == 1

    def test_earliest_order_by_timestamp_not_arrival(self):
        """Test the cohort comes from the earliest date even when listed last"""
        roots = [customer(1, [order(1, "2025-05-03", 5), order(2, "2025-03-01", 5)])]

        keys = [(r["cohort"], r["periods_since_first_purchase"]) for r in run("cohort", roots).rows]

        assert keys == [("2025-03", 0), ("2025-03", 2)]

    def test_undated_orders_excluded_and_counted(self):
        roots = [customer(1, [order(1, "2025-05-03", 5), order(2, None, 99)])]

        result = run("cohort", roots)

        assert result.excluded_undated == 1
        assert result.rows[0]["Total_orders"] == 1

    def test_customer_without_orders_has_no_row(self):
        assert run("cohort", [customer(1)]).rows == []


@pytest.mark.unit
class TestRfmStrategy:
    """Tests for the RFM report"""

    def test_single_order_customer_is_new(self):
        """Test a one-order customer is New even with top R and M scores"""
        roots = [customer(1, [order(1, "2025-06-29", 50000.0)], email="vip@example.com")]

        row = run("rfm", roots).rows[0]

        assert row["r_score"] == 5
        assert row["m_score"] == 5
        assert row["frequency"] == 1
        assert row["rfm_group"] == "New"
        assert row["email"] == "vip@example.com"

    def test_scores_and_band(self):
        roots = [customer(1, [
            order(1, "2025-06-20", 300.0),
            order(2, "2025-06-01", 300.0),
            order(3, "2025-05-01", 300.0),
        ])]

        row = run("rfm", roots).rows[0]

        assert row["last_order_date"] == "2025-06-20"
        assert row["recency_days"] == 10
        assert row["frequency"] == 3
        assert row["monetary"] == 900.0
        assert (row["r_score"], row["f_score"], row["m_score"]) == (5, 3, 4)
        assert row["rfm_score"] == 4.0
        assert row["rfm_group"] == "High-Value"

    def test_monetary_net_of_returns(self):
        roots = [customer(1, [order(1, "2025-06-20", 300.0, refunded=100.0), order(2, "2025-06-21", 50.0)])]

        assert run("rfm", roots).rows[0]["monetary"] == 250.0

    def test_customer_without_orders_gets_zero_row(self):
        row = run("rfm", [customer(1)]).rows[0]

        assert row["frequency"] == 0
        assert row["monetary"] == 0.0
        assert (row["r_score"], row["f_score"], row["m_score"]) == (0, 0, 0)
        assert row["rfm_group"] == "Lost"
        assert row["last_order_date"] == ""

    def test_future_order_has_zero_recency(self):
        roots = [customer(1, [order(1, "2025-07-15", 10.0), order(2, "2025-07-16", 10.0)])]

        assert run("rfm", roots).rows[0]["recency_days"] == 0

    def test_sorted_by_spend_descending(self):
        roots = [
            customer(1, [order(1, "2025-06-01", 10.0)]),
            customer(2, [order(2, "2025-06-01", 500.0)]),
            customer(3),
        ]

        ids = [row["customer_id"] for row in run("rfm", roots).rows]

        assert ids == ["gid://shopify/Customer/2", "gid://shopify/Customer/1", "gid://shopify/Customer/3"]


@pytest.mark.unit
class TestLocationStrategy:
    """Tests for the location report"""

    def test_missing_address_goes_to_unknown_bucket(self):
        """Test a customer without an address is counted, not dropped"""
        roots = [customer(1, [order(1, "2025-05-01", 25.0)])]

        rows = run("location", roots).rows

        assert [(r["city"], r["region"], r["country"]) for r in rows] == [("Unknown", "ZZ", "ZZ")]
        assert rows[0]["customers"] == 1
        assert rows[0]["orders"] == 1
        assert rows[0]["total_sales"] == 25.0

    def test_partial_address_fills_unknown_parts(self):
        address = Address(city="  ", country_code="CA")
        row = run("location", [customer(1, address=address)]).rows[0]

        assert (row["city"], row["region"], row["country"]) == ("Unknown", "ZZ", "CA")
        assert row["orders"] == 0
        assert row["average_order_value"] == 0.0
        assert row["orders_per_customer"] == 0.0

    def test_grouped_and_sorted_by_sales(self):
        toronto = Address(city="Toronto", province_code="ON", country_code="CA")
        ottawa = Address(city="Ottawa", province_code="ON", country_code="CA")
        roots = [
            customer(1, [order(1, "2025-05-01", 10.0)], address=ottawa),
            customer(2, [order(2, "2025-05-01", 40.0), order(3, "2025-05-02", 20.0)], address=toronto),
            customer(3, [order(4, "2025-05-03", 30.0)], address=toronto),
        ]

        rows = run("location", roots).rows

        assert [r["city"] for r in rows] == ["Toronto", "Ottawa"]
        assert rows[0]["customers"] == 2
        assert rows[0]["orders"] == 3
        assert rows[0]["total_sales"] == 90.0
        assert rows[0]["average_order_value"] == 30.0
        assert rows[0]["orders_per_customer"] == 1.5


@pytest.mark.unit
class TestDailySalesStrategy:
    """Tests for the sales-over-time report"""

    def test_sales_components_and_previous_period(self):
        roots = [
            order(1, "2025-04-15", 110.0, line_items_price=100.0, discounts=5.0, tax=10.0, shipping=5.0,
                  customer_id="gid://shopify/Customer/1"),
            order(2, "2025-05-15", 220.0, line_items_price=200.0, discounts=10.0, tax=20.0, shipping=10.0,
                  refunded=30.0, customer_id="gid://shopify/Customer/1"),
        ]

        rows = run("daily_sales", roots).rows

        assert [r["day"] for r in rows] == ["2025-04-15", "2025-05-15"]
        april, may = rows
        assert april["net_sales"] == 95.0
        assert april["total_sales"] == 110.0
        assert april["previous_period_day"] == "2025-03-15"
        assert april["previous_period_total_sales"] == 0.0
        assert april["total_sales_change"] == 0.0

        assert may["returns"] == 30.0
        assert may["net_sales"] == 160.0
        assert may["total_sales"] == 190.0
        assert may["previous_period_total_sales"] == 110.0
        assert may["total_sales_change"] == pytest.approx(0.7273)

    def test_sibling_orders_bucket_independently(self):
        """Test each order of a customer lands in its own day"""
        roots = [customer(1, [order(1, "2025-05-01", 10.0, line_items_price=10.0),
                              order(2, "2025-05-02", 20.0, line_items_price=20.0)])]

        rows = run("daily_sales", roots).rows

        assert [(r["day"], r["orders"], r["customers"]) for r in rows] == [
            ("2025-05-01", 1, 1),
            ("2025-05-02", 1, 1),
        ]

    def test_month_end_previous_period_clamped(self):
        rows = run("daily_sales", [order(1, "2025-03-31", 10.0)]).rows
        assert rows[0]["previous_period_day"] == "2025-02-28"

    def test_order_without_customer_not_counted_as_customer(self):
        rows = run("daily_sales", [order(1, "2025-05-01", 10.0)]).rows
        assert rows[0]["orders"] == 1
        assert rows[0]["customers"] == 0

    def test_net_sales_identity_holds_per_row(self):
        roots = [
            order(n, "2025-05-01", 0.0, line_items_price=g, discounts=d, refunded=r)
            for n, (g, d, r) in enumerate([(100.0, 10.0, 5.0), (59.99, 0.0, 0.0), (12.5, 2.5, 12.5)], start=1)
        ]

        row = run("daily_sales", roots).rows[0]

        assert row["net_sales"] == pytest.approx(row["gross_sales"] - row["discounts"] - row["returns"], abs=0.01)


@pytest.mark.unit
class TestReturnsStrategy:
    """Tests for the returns report"""

    def test_return_rates(self):
        roots = [
            order(1, "2025-05-01", 100.0, line_items_price=100.0, refunded=25.0),
            order(2, "2025-05-01", 100.0, line_items_price=100.0),
            order(3, "2025-05-01", 50.0, line_items_price=50.0, refunded=15.0),
            order(4, "2025-05-01", 50.0, line_items_price=50.0),
        ]

        row = run("returns", roots).rows[0]

        assert row["orders"] == 4
        assert row["orders_with_returns"] == 2
        assert row["refunds"] == 2
        assert row["returned_amount"] == 40.0
        assert row["return_rate"] == 0.5
        assert row["returned_share"] == pytest.approx(0.1333)
        assert row["average_refund"] == 20.0

    def test_no_returns_zero_rates(self):
        row = run("returns", [order(1, "2025-05-01", 10.0)]).rows[0]

        assert row["return_rate"] == 0.0
        assert row["returned_share"] == 0.0
        assert row["average_refund"] == 0.0


@pytest.mark.unit
class TestChannelStrategy:
    """Tests for the channel report"""

    def test_channel_medium_buckets(self):
        roots = [
            order(1, "2025-05-01", 30.0, line_items_price=30.0, source_name="Web", medium="Email"),
            order(2, "2025-05-01", 10.0, line_items_price=10.0, source_name="web", medium="email"),
            order(3, "2025-05-01", 60.0, line_items_price=60.0),
        ]

        rows = run("channel", roots).rows

        assert [(r["channel"], r["medium"]) for r in rows] == [("unknown", "(none)"), ("web", "email")]
        assert rows[0]["share_of_sales"] == 0.6
        assert rows[1]["orders"] == 2
        assert rows[1]["share_of_sales"] == 0.4
        assert rows[1]["average_order_value"] == 20.0

    def test_empty_export_has_no_rows(self):
        assert run("channel", []).rows == []


@pytest.mark.unit
class TestOrderSummaryStrategy:
    """Tests for the headline summary report"""

    def test_totals(self):
        roots = [
            order(1, "2025-05-01", 100.0, discounts=60.0),
            order(2, "2025-05-01", 50.0, discounts=50.0, refunded=10.0),
            order(3, None, 30.0),
        ]

        row = run("order_summary", roots).rows[0]

        assert row["scope"] == "all"
        assert row["total_orders"] == 3
        assert row["total_revenue"] == 180.0
        assert row["average_order_value"] == 60.0
        assert row["total_discounts"] == 110.0
        assert row["high_discount_orders"] == 1
        assert row["total_refunded"] == 10.0

    def test_empty_export_emits_zero_row(self):
        """Test zero orders still give one row with zero averages"""
        rows = run("order_summary", []).rows

        assert rows == [{
            "scope": "all",
            "total_orders": 0,
            "total_revenue": 0.0,
            "average_order_value": 0.0,
            "total_discounts": 0.0,
            "high_discount_orders": 0,
            "cancelled_orders": 0,
            "total_refunded": 0.0,
            "units_sold": 0,
        }]

    def test_threshold_configurable(self):
        config = ReportConfig(high_discount_threshold=5.0)
        row = run("order_summary", [order(1, "2025-05-01", 10.0, discounts=6.0)], config).rows[0]
        assert row["high_discount_orders"] == 1

    def test_cancelled_orders_and_units(self):
        """Test cancellation by date or by reason, and units from attached line items"""
        roots = [
            order(1, "2025-05-01", 40.0, cancel_reason="CUSTOMER"),
            order(2, "2025-05-01", 30.0, cancelled_at=ts("2025-05-02")),
            order(3, "2025-05-01", 20.0, line_items=[
                LineItem(id="gid://shopify/LineItem/1", quantity=2),
                LineItem(id="gid://shopify/LineItem/2", quantity=3),
            ]),
        ]

        row = run("order_summary", roots).rows[0]

        assert row["total_orders"] == 3
        assert row["cancelled_orders"] == 2
        assert row["units_sold"] == 5


def by_processed_date(**fields) -> ReportConfig:
    return ReportConfig(as_of=date(2025, 6, 30), date_field="processed_at", **fields)


@pytest.mark.unit
class TestFieldSelectors:
    """Tests for the configured date and money fields"""

    def test_daily_sales_bucketed_by_processed_date(self):
        """Test switching the date field moves an order to another day"""
        roots = [order(1, "2025-05-01", 50.0, processed_at=ts("2025-05-02"))]

        assert [r["day"] for r in run("daily_sales", roots).rows] == ["2025-05-01"]
        assert [r["day"] for r in run("daily_sales", roots, by_processed_date()).rows] == ["2025-05-02"]

    def test_missing_processed_date_is_undated(self):
        roots = [
            order(1, "2025-05-01", 50.0, processed_at=ts("2025-05-01")),
            order(2, "2025-05-01", 70.0),
        ]

        result = run("returns", roots, by_processed_date())

        assert result.excluded_undated == 1
        assert [r["orders"] for r in result.rows] == [1]

    def test_cohort_follows_date_field(self):
        """Test the first purchase and periods come from the configured date"""
        roots = [customer(1, [
            order(1, "2025-04-29", 10.0, processed_at=ts("2025-05-03")),
            order(2, "2025-05-01", 20.0, processed_at=ts("2025-05-03")),
        ])]

        default_keys = [(r["cohort"], r["periods_since_first_purchase"]) for r in run("cohort", roots).rows]
        processed_keys = [
            (r["cohort"], r["periods_since_first_purchase"])
            for r in run("cohort", roots, by_processed_date()).rows
        ]

        assert default_keys == [("2025-04", 0), ("2025-04", 1)]
        assert processed_keys == [("2025-05", 0)]

    def test_rfm_recency_follows_date_field(self):
        roots = [customer(1, [order(1, "2025-05-31", 10.0, processed_at=ts("2025-06-20"))])]

        assert run("rfm", roots).rows[0]["recency_days"] == 30
        assert run("rfm", roots, by_processed_date()).rows[0]["recency_days"] == 10

    @pytest.mark.parametrize("sales_field,expected", [
        ("total_price", 110.0),
        ("gross_sales", 100.0),
        ("net_sales", 75.0),
        ("net_spend", 90.0),
    ])
    def test_cohort_and_location_sum_sales_field(self, sales_field, expected):
        """Test the money field changes the summed sales"""
        roots = [customer(1, [
            order(1, "2025-05-01", 110.0, line_items_price=100.0, discounts=5.0, refunded=20.0),
        ])]
        config = ReportConfig(as_of=date(2025, 6, 30), sales_field=sales_field)

        assert run("cohort", roots, config).rows[0]["Total_total_sales"] == expected
        assert run("location", roots, config).rows[0]["total_sales"] == expected

    def test_rfm_monetary_field(self):
        roots = [customer(1, [order(1, "2025-05-01", 300.0, refunded=100.0)])]
        gross = ReportConfig(as_of=date(2025, 6, 30), monetary_field="total_price")

        assert run("rfm", roots).rows[0]["monetary"] == 200.0
        assert run("rfm", roots, gross).rows[0]["monetary"] == 300.0

    def test_gross_sales_falls_back_to_line_items(self):
        """Test orders without a line-items total sum their attached line items"""
        roots = [order(1, "2025-05-01", 0.0, line_items=[
            LineItem(id="gid://shopify/LineItem/1", original_total=60.0),
            LineItem(id="gid://shopify/LineItem/2", original_total=40.0),
        ])]

        assert run("daily_sales", roots).rows[0]["gross_sales"] == 100.0
