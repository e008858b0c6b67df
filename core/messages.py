"""
core/messages.py -- Localizable message catalogs for validation and responses.

Validation messages are keyed "<rule_set>.<field>.<rule>" so every
(field, rule) pair of every rule set may carry its own text. A missing key
falls back to the per-rule template in _RULE_TEMPLATES, formatted with the
field's display name and the rule's parameters (min, max, other, ...).

Response messages (the human "message" in every envelope) live in the same
catalog under plain keys such as "product_created".

The "en" catalog is complete; other locales fall back to "en" key by key.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

from typing import Any

_RULE_TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "required": "The {attribute} field is required.",
        "string": "The {attribute} field must be a string.",
        "min": "The {attribute} field must be at least {min} characters.",
        "max": "The {attribute} field must not be greater than {max} characters.",
        "numeric": "The {attribute} field must be a number.",
        "email": "The {attribute} field must be a valid email address.",
        "unique": "The {attribute} has already been taken.",
        "confirmed": "The {attribute} field confirmation does not match.",
        "regex": "The {attribute} field format is invalid.",
    },
    "tr": {
        "required": "{attribute} alanı gereklidir.",
        "string": "{attribute} alanı metin olmalıdır.",
        "min": "{attribute} alanı en az {min} karakter olmalıdır.",
        "max": "{attribute} alanı {max} karakterden uzun olamaz.",
        "numeric": "{attribute} alanı sayı olmalıdır.",
        "email": "{attribute} alanı geçerli bir e-posta adresi olmalıdır.",
        "unique": "{attribute} zaten alınmış.",
        "confirmed": "{attribute} onayı eşleşmiyor.",
        "regex": "{attribute} alanının biçimi geçersiz.",
    },
}

_CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        # Registration
        "register.name.required": "The name field cannot be left empty.",
        "register.name.string": "The name field must consist of characters only.",
        "register.name.regex": "The name field may only contain letters and spaces.",
        "register.name.max": "The name field cannot be longer than 255 characters.",
        "register.email.required": "The email field cannot be left empty.",
        "register.email.email": "Please enter a valid email address.",
        "register.email.unique": "This email address is already in use.",
        "register.email.max": "The email field cannot be longer than 255 characters.",
        "register.password.required": "The password field cannot be left empty.",
        "register.password.string": "The password must be text.",
        "register.password.min": "The password must be at least 8 characters long.",
        "register.password.max": "The password cannot be longer than 255 characters.",
        "register.password.confirmed": "The passwords do not match.",
        # Login
        "login.email.required": "The email field cannot be left empty.",
        "login.email.email": "Please enter a valid email address.",
        "login.password.required": "The password field cannot be left empty.",
        "login.password.string": "The password field must be text.",
        # Products
        "product_create.name.required": "The product name field cannot be left empty.",
        "product_create.price.required": "The product price field cannot be left empty.",
        "product_create.price.numeric": "Please enter a number in the product price field.",
        "product_create.description.required": "The description field cannot be left empty.",
        "product_update.name.required": "The product name field must not be left empty.",
        "product_update.price.required": "The product price field must not be left empty.",
        "product_update.price.numeric": "The product price must be a number.",
        "product_update.description.required": "The description field must not be left empty.",
        # Responses
        "unauthenticated": "You must log in first.",
        "validation_failed": "Validation failed",
        "login_invalid": "Invalid login.",
        "login_failed": "The email address or password is incorrect.",
        "login_success": "Login successful.",
        "register_success": "Registration successful. Please log in.",
        "logout_success": "Logged out successfully.",
        "product_created": "Product created successfully.",
        "product_updated": "Product updated successfully.",
        "product_deleted": "Product removed successfully.",
        "product_not_found": "Product not found.",
        "not_found": "Resource not found.",
        "database_error": "Database error",
        "server_error": "An error occurred.",
        "rate_limited": "Too many requests.",
    },
    "tr": {
        "register.name.required": "İsim alanı boş bırakılamaz.",
        "register.name.string": "İsim alanı sadece karakterlerden oluşmalıdır.",
        "register.name.regex": "İsim alanı sadece harfler ve boşluklar içerebilir.",
        "register.name.max": "İsim alanı 255 karakterden uzun olamaz.",
        "register.email.required": "Email alanı boş bırakılamaz.",
        "register.email.email": "Lütfen geçerli bir email adresi giriniz.",
        "register.email.unique": "Bu email adresi zaten kullanılıyor.",
        "register.email.max": "Email alanı 255 karakterden uzun olamaz.",
        "register.password.required": "Şifre alanı boş bırakılamaz.",
        "register.password.string": "Şifre sadece metin olarak kabul edilir.",
        "register.password.min": "Şifre en az 8 karakter uzunluğunda olmalıdır.",
        "register.password.max": "Şifre 255 karakterden uzun olamaz.",
        "register.password.confirmed": "Şifreler eşleşmiyor.",
        "login.email.required": "Email alanı boş bırakılamaz.",
        "login.email.email": "Lütfen geçerli bir e-posta adresi giriniz.",
        "login.password.required": "Şifre alanı boş bırakılamaz.",
        "login.password.string": "Şifre alanı bir metin olmalıdır.",
        "product_create.name.required": "Ürün adı alanı boş bırakılamaz.",
        "product_create.price.required": "Ürün fiyatı alanı boş bırakılamaz.",
        "product_create.price.numeric": "Lütfen ürün fiyatı alanına sayı giriniz.",
        "product_create.description.required": "Açıklama alanı boş bırakılamaz.",
        "product_update.name.required": "Ürün adı alanı boş bırakılmamalıdır.",
        "product_update.price.required": "Ürün fiyatı alanı boş bırakılmamalıdır.",
        "product_update.price.numeric": "Ürün fiyatı sayı olmalıdır.",
        "product_update.description.required": "Açıklama alanı boş bırakılmamalıdır.",
        "unauthenticated": "İlk önce giriş yapmalısınız.",
        "validation_failed": "Doğrulama başarısız.",
        "login_invalid": "Geçersiz giriş.",
        "login_failed": "E-posta adresi ya da şifre hatalı.",
        "login_success": "Giriş başarılı",
        "register_success": "Kayıt Başarılı. Lütfen giriş yapın.",
        "logout_success": "Çıkış başarılı",
        "product_created": "Ürün başarıyla oluşturuldu.",
        "product_updated": "Ürün başarıyla güncellendi.",
        "product_deleted": "Ürün başarıyla kaldırıldı.",
        "product_not_found": "Ürün bulunamadı.",
        "not_found": "Kaynak bulunamadı.",
        "database_error": "Veritabanı hatası.",
        "server_error": "Bir hata oluştu.",
        "rate_limited": "Çok fazla istek.",
    },
}


class Translator:
    """Look up response and validation messages for one locale.

    Usage:
        t = Translator("tr")
        t("product_created")
        t.rule_message("register", "password", "min", {"min": 8})
    """

    def __init__(self, locale: str = "en") -> None:
        if locale not in _CATALOGS:
            raise ValueError(f"Unknown locale: {locale!r}")
        self.locale = locale

    def __call__(self, key: str) -> str:
        catalog = _CATALOGS[self.locale]
        if key in catalog:
            return catalog[key]
        return _CATALOGS["en"].get(key, key)

    def rule_message(self, rule_set: str, field: str, rule: str, params: dict[str, Any] | None = None) -> str:
        """Return the message for a failed (field, rule) pair within a rule set."""
        key = f"{rule_set}.{field}.{rule}"
        for locale in (self.locale, "en"):
            if key in _CATALOGS[locale]:
                return _CATALOGS[locale][key]
        template = _RULE_TEMPLATES[self.locale].get(rule) or _RULE_TEMPLATES["en"].get(rule, "The {attribute} field is invalid.")
        return template.format(attribute=field.replace("_", " "), **(params or {}))
