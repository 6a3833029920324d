from django.conf import settings

import logging

logger = logging.getLogger("quiz_api")


class TrustedProxyMiddleware:
    """
    Take the client address from X-Forwarded-For, trusting only as many
    proxy hops as TRUSTED_PROXY_HOPS. Each trusted hop appends the address
    it received the request from, so with N hops the client is the N-th
    entry counted from the right.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.hops = getattr(settings, "TRUSTED_PROXY_HOPS", 0)

    def __call__(self, request):
        forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")

        if self.hops and forwarded_for:
            addresses = [address.strip() for address in forwarded_for.split(",") if address.strip()]
            if addresses:
                client = addresses[-self.hops] if len(addresses) >= self.hops else addresses[0]
                logger.debug(f"client address {client} from X-Forwarded-For {forwarded_for}")
                request.META["REMOTE_ADDR"] = client

        return self.get_response(request)
