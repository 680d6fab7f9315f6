#!/usr/bin/env python3
"""
Container Router Quickstart Example

Demonstrates carrier detection, strategy selection and failure-aware
provider ordering.
"""

from container_router import Router, TrackingContext, TrackingType


def main():
    """Run quickstart demonstration."""
    print("=== Container Router Quickstart ===\n")

    # Initialize router
    print("1. Initializing router...")
    router = Router()
    print(f"   Loaded {len(router.registry)} providers")
    print(f"   BOL-capable: {', '.join(p.id for p in router.registry.providers_supporting(TrackingType.BOL))}")
    print()

    requests = [
        ("Maersk container", TrackingContext("MAEU1234567")),
        ("MSC, premium customer", TrackingContext("MSCU 765432-1", user_tier="premium")),
        ("Unknown format, free tier", TrackingContext("UNKN1234567", user_tier="free")),
        ("Bill of lading", TrackingContext("BOL123456789", tracking_type="bol")),
        ("Enterprise, retry", TrackingContext(
            "EGLV3333333", user_tier="enterprise", previous_failures=["evergreen"],
        )),
    ]

    print("2. Routing sample requests...")
    for label, context in requests:
        decision = router.analyze_routing(context)
        print(f"\n   {label}: {context.tracking_number}")
        print(f"   → Carrier: {decision.suggested_carrier.value if decision.suggested_carrier else 'unknown'}"
              f" (confidence: {decision.confidence:.2f})")
        print(f"   → Strategy: {decision.fallback_strategy.value}")
        print(f"   → Order: {', '.join(decision.prioritized_providers[:5])}")
        print(f"   → Reasoning: {decision.reasoning}")

    print("\n" + "=" * 60)

    # Report outcomes
    print("\n3. Reporting failures...")
    for _ in range(4):
        router.record_failure("maersk", {"errorType": "TIMEOUT", "message": "Request timeout"})
    decision = router.analyze_routing(TrackingContext("TEST1234567"))
    print(f"   After 4 maersk timeouts, top choice: {decision.top_provider}")

    router.record_success("maersk")
    decision = router.analyze_routing(TrackingContext("TEST1234567"))
    print(f"   After one success, top choice: {decision.top_provider}")

    print("\n4. Provider stats:")
    for stats in router.get_provider_stats()[:5]:
        print(f"     {stats['provider']}: {stats['cost']}¢, "
              f"{stats['reliability']:.0%} reliable, "
              f"{stats['recent_failures']} recent failure(s)")

    print("\n5. Explanation:")
    print(router.explain(router.analyze_routing(TrackingContext("MAEU1234567"))))

    print("\n" + "=" * 60)
    print("Quickstart complete!")


if __name__ == "__main__":
    main()
