class ProviderError(Exception):
    def __init__(self, message, status_code=502, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


NO_OFFERS_MESSAGE = "No flight offers found for the given criteria."


class NoOffersFound(ProviderError):
    def __init__(self, message=NO_OFFERS_MESSAGE, details=None):
        super().__init__(message, status_code=404, details=details)


class FlightProvider:
    def search_locations(self, keyword, categories=None):
        """
        Returns a list of Place records matching the keyword.
        """
        raise NotImplementedError

    def search_flight_offers(self, criteria):
        """
        Returns {"offers": [...], "dictionaries": {...}} for validated criteria.
        """
        raise NotImplementedError

    def confirm_price(self, offer):
        """
        Re-prices a previously returned offer.
        """
        raise NotImplementedError
