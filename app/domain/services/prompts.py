from typing import Sequence

from app.domain.models.product import MatchedProduct

BASE_SYSTEM_PROMPT = """Kamu adalah Agen Alia, asisten virtual ramah dari Toko Roti Alia.
Kamu membantu pelanggan dengan:
- Informasi tentang produk roti dan kue (croissant, sourdough, cinnamon rolls, chocolate cake, dll)
- Harga produk (Croissant Rp 18.000, Sourdough Rp 35.000, Cinnamon Rolls Rp 22.000, Chocolate Cake Rp 180.000)
- Jam operasional: Senin-Minggu 07.00-21.00 WIB
- Lokasi: Jl. Raya Bakery No. 123, Jakarta Selatan
- Pemesanan dan pengiriman
- Rekomendasi produk berdasarkan kebutuhan pelanggan

Gunakan bahasa Indonesia yang ramah dan hangat. Sertakan emoji yang relevan untuk membuat percakapan lebih menyenangkan.
Jawab dengan singkat dan jelas. Jika pelanggan bertanya di luar konteks toko roti, arahkan kembali dengan sopan ke topik toko."""

PRODUCTS_HEADER = (
    "Produk yang relevan dengan pertanyaan pelanggan "
    "(gunakan data ini sebagai acuan utama untuk nama, deskripsi, dan harga):"
)

def format_price(amount: int) -> str:
    """Rupiah, id-ID style: 'Rp 18.000' (dot thousands separator, no decimals)."""
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(int(amount)):,}".replace(",", ".")

def _product_line(p: MatchedProduct) -> str:
    label = f"{p.name} ({p.badge})" if p.badge else p.name
    return f"- {label}: {p.description or ''} - {format_price(p.price)}"

def system_prompt(matched: Sequence[MatchedProduct]) -> str:
    # No grounding data: persona prompt verbatim
    if not matched:
        return BASE_SYSTEM_PROMPT
    lines = [_product_line(p) for p in matched]
    return BASE_SYSTEM_PROMPT + "\n\n" + PRODUCTS_HEADER + "\n" + "\n".join(lines)
