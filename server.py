#!/usr/bin/env python3
"""Flask API for event discovery, smart add, ride quotes and coupons."""

import math

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

import settings
from coupons import AppliedCoupon, CouponRejection, get_engine
from event_discovery import EventDiscoveryFilters, discover_events, sort_events
from utils.distance import haversine_miles
from utils.observability import increment, log_event, record_failure, snapshot
from utils.pricing import calculate_ride_quote
from venue_scout import get_directory, parse_smart_add, smart_add

app = Flask(__name__)
CORS(app)

# Storage is in-memory: limits reset on restart and are not shared across
# instances. Discovery gets a tighter limit since each call hits two paid APIs.
limiter = Limiter(
    get_remote_address,
    app=app,
    default_limits=[settings.SERVER_DEFAULT_RATE_LIMIT],
    storage_uri="memory://",
)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _point(value) -> dict | None:
    """{"lat", "lng"} from a request field, or None if absent or malformed."""
    if not isinstance(value, dict):
        return None
    try:
        return {"lat": float(value["lat"]), "lng": float(value["lng"])}
    except (KeyError, TypeError, ValueError):
        return None


@app.route('/api/events/discover', methods=['POST'])
@limiter.limit(settings.SERVER_DISCOVERY_RATE_LIMIT)
def discover():
    """
    Discover events near a location.

    Request body:
    {
        "latitude": 41.4993, "longitude": -81.6944, "radius": 25,
        "category": "sports",            // optional, "all" for no filter
        "keyword": "guardians",          // optional
        "startDateTime": "...Z",         // optional
        "endDateTime": "...Z",           // optional
        "sort": "soonest"                // optional: soonest, nearest, popular
    }
    """
    increment("server.api.discover.calls")
    data = _json_body()

    try:
        filters = EventDiscoveryFilters.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"error": f"Invalid filters: {e}"}), 400

    sort = data.get("sort")
    if sort and sort not in ("soonest", "nearest", "popular"):
        return jsonify({"error": f"Unknown sort: {sort}"}), 400

    result = discover_events(filters)
    payload = result.to_dict()
    if sort:
        payload["events"] = sort_events(result.events, sort, filters.origin)
    return jsonify(payload)


@app.route('/api/smart-add', methods=['POST'])
def smart_add_route():
    """
    Resolve a free-text destination.

    Request body:
    {
        "query": "browns game",
        "origin": {"lat": 41.49, "lng": -81.69},   // optional
        "radiusMiles": 25,                          // optional
        "surge": 1.2,                               // optional
        "plan": false                               // true for venue picker output
    }
    """
    increment("server.api.smart_add.calls")
    data = _json_body()
    query = data.get("query")

    if not isinstance(query, str):
        return jsonify({"error": "Query is required"}), 400

    origin = _point(data.get("origin"))
    if data.get("origin") is not None and origin is None:
        return jsonify({"error": "origin must have numeric lat and lng"}), 400

    if data.get("plan"):
        lat, lng = (origin["lat"], origin["lng"]) if origin else (None, None)
        return jsonify(parse_smart_add(query, lat, lng).to_dict())

    try:
        radius = float(data.get("radiusMiles", settings.SMART_ADD_DEFAULT_RADIUS_MILES))
        surge = float(data.get("surge", 1.0))
    except (TypeError, ValueError):
        return jsonify({"error": "radiusMiles and surge must be numbers"}), 400

    if radius < 0 or surge <= 0:
        return jsonify({"error": "radiusMiles must be >= 0 and surge > 0"}), 400

    result = smart_add(query, origin=origin, radius_miles=radius, surge=surge)
    return jsonify(result.to_dict())


@app.route('/api/ride-quote', methods=['POST'])
def ride_quote():
    """
    Price a ride to an event.

    Either "distanceMiles" or both "pickup" and "dropoff" points are required.
    """
    increment("server.api.ride_quote.calls")
    data = _json_body()

    pickup_time = data.get("pickupTime")
    if not pickup_time:
        return jsonify({"error": "pickupTime is required"}), 400

    if data.get("distanceMiles") is not None:
        try:
            distance = float(data["distanceMiles"])
        except (TypeError, ValueError):
            return jsonify({"error": "distanceMiles must be a number"}), 400
    else:
        pickup = _point(data.get("pickup")) or get_directory().default_origin
        dropoff = _point(data.get("dropoff"))
        if dropoff is None:
            return jsonify({"error": "distanceMiles or dropoff is required"}), 400
        distance = round(haversine_miles(pickup, dropoff), 2)

    try:
        quote = calculate_ride_quote(
            distance,
            destination=data.get("destination", ""),
            pickup_time=pickup_time,
            venue=data.get("venue"),
            event_date=data.get("eventDate"),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(quote.to_dict())


def _coupon_request(data: dict) -> tuple[dict | None, str | None]:
    code = data.get("code")
    user_id = data.get("userId")
    if not isinstance(code, str) or not isinstance(user_id, str) or not code.strip() or not user_id:
        return None, "code and userId are required strings"
    try:
        ride_amount = float(data["rideAmount"])
    except (KeyError, TypeError, ValueError):
        return None, "rideAmount must be a number"
    if not math.isfinite(ride_amount) or ride_amount < 0:
        return None, "rideAmount must be a finite number >= 0"

    venue = data.get("venue")
    if venue is not None and not isinstance(venue, str):
        return None, "venue must be a string"

    engine = get_engine()
    is_first_ride = data.get("isFirstRide")
    if is_first_ride is not None and not isinstance(is_first_ride, bool):
        return None, "isFirstRide must be true or false"
    if is_first_ride is None:
        is_first_ride = not engine.has_user_completed_ride(user_id)

    return {
        "code": code,
        "user_id": user_id,
        "ride_amount": ride_amount,
        "venue": venue,
        "is_first_ride": is_first_ride,
    }, None


@app.route('/api/coupons/apply', methods=['POST'])
def apply_coupon():
    """Validate a coupon and price it against a ride without redeeming it."""
    increment("server.api.coupons_apply.calls")
    args, error = _coupon_request(_json_body())
    if error:
        return jsonify({"error": error}), 400

    result = get_engine().apply_coupon(**args)
    if not isinstance(result, AppliedCoupon):
        return jsonify({"valid": False, "error": result.error})
    return jsonify({"valid": True, **result.to_dict()})


@app.route('/api/coupons/redeem', methods=['POST'])
def redeem_coupon():
    """Apply a coupon to a completed ride and record the usage."""
    increment("server.api.coupons_redeem.calls")
    data = _json_body()
    ride_id = data.get("rideId")
    if not isinstance(ride_id, str) or not ride_id:
        return jsonify({"error": "rideId is required"}), 400

    args, error = _coupon_request(data)
    if error:
        return jsonify({"error": error}), 400

    result = get_engine().redeem_coupon(ride_id=ride_id, **args)
    if isinstance(result, CouponRejection):
        return jsonify({"valid": False, "error": result.error})
    if result is None:
        record_failure("server.coupons_redeem", "record_failed", code=args["code"], ride_id=ride_id)
        return jsonify({"error": "Could not record coupon usage"}), 500

    log_event("coupon_redeem_request", code=result.applied.coupon.code, ride_id=ride_id)
    return jsonify({"valid": True, **result.to_dict()})


@app.route('/api/coupons/active')
def active_coupons():
    coupons = get_engine().get_active_coupons()
    return jsonify({"coupons": [c.to_dict() for c in coupons], "count": len(coupons)})


@app.route('/api/debug/health')
def debug_health():
    """Expose lightweight process health and recent failures."""
    payload = {
        "status": "ok",
        "settings": {
            "discovery_timeout_sec": settings.DISCOVERY_HTTP_TIMEOUT_SEC,
            "discovery_workers": settings.DISCOVERY_WORKERS,
            "smart_add_radius_miles": settings.SMART_ADD_DEFAULT_RADIUS_MILES,
        },
        "observability": snapshot(),
    }
    return jsonify(payload)


if __name__ == '__main__':
    print("Starting discovery engine server...")
    print(f"API at http://localhost:{settings.SERVER_PORT}/api")
    app.run(port=settings.SERVER_PORT, debug=True)
