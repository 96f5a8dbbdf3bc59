# --- storefront/model/user.py ---

from ..extensions import db

class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(db.String(50), nullable=False, default="customer", index=True)

    # profile, used to prefill checkout addresses
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    phone = db.Column(db.String(50))
    address_line_1 = db.Column(db.String(255))
    address_line_2 = db.Column(db.String(255))
    city = db.Column(db.String(120))
    state = db.Column(db.String(120))
    postal_code = db.Column(db.String(20))
    country = db.Column(db.String(120))

    PROFILE_FIELDS = (
        "first_name", "last_name", "phone",
        "address_line_1", "address_line_2",
        "city", "state", "postal_code", "country",
    )

    def profile(self) -> dict:
        return {f: getattr(self, f) for f in self.PROFILE_FIELDS}
