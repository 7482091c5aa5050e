"""
Conjunto de treino embutido usado no bootstrap do classificador estatístico.

Usado na inicialização quando não existe snapshot persistido. A ordem é
estável para que o treino seja determinístico.
"""
from typing import List, Tuple

BOOTSTRAP_EXAMPLES: List[Tuple[str, str]] = [
    # positive
    ("I love this product, it is amazing", "positive"),
    ("Amazing quality, I love it so much", "positive"),
    ("Best purchase of the year, highly recommend this product", "positive"),
    ("The support team was fantastic and very helpful", "positive"),
    ("What a wonderful experience, everything worked perfectly", "positive"),
    ("Great app, love the new design", "positive"),
    ("Excellent service and fast delivery, thank you", "positive"),
    ("This product exceeded my expectations, amazing value", "positive"),
    ("Really happy with the results, great job", "positive"),
    ("Absolutely brilliant update, the app feels smooth", "positive"),
    ("I am so glad I bought it, love love love", "positive"),
    ("Awesome customer care, they solved everything quickly", "positive"),
    ("Beautiful design and excellent battery life", "positive"),
    ("Such a delightful surprise, works like a charm", "positive"),
    ("Highly recommend, amazing product and friendly staff", "positive"),
    ("Five stars, fantastic quality for the price", "positive"),
    ("Me encanta este producto, es excelente", "positive"),
    ("Servicio increíble y muy rápido, gracias", "positive"),
    ("J'adore cette application, elle est géniale", "positive"),
    ("Produit excellent, je suis très heureux", "positive"),
    ("Ich liebe dieses Produkt, einfach wunderbar", "positive"),
    ("Toller Service, sehr zufrieden", "positive"),
    ("Love how easy it is to use, great work", "positive"),
    ("Perfect fit and wonderful material, very pleased", "positive"),
    # negative
    ("This is the worst purchase I have ever made", "negative"),
    ("Worst customer service ever, never buying again", "negative"),
    ("Terrible quality, it broke after one day", "negative"),
    ("I hate this app, it crashes constantly", "negative"),
    ("Awful experience, the refund never came", "negative"),
    ("Completely useless, a waste of money", "negative"),
    ("The update made everything worse and slower", "negative"),
    ("Horrible support, nobody answered my emails", "negative"),
    ("Very disappointed, the item arrived damaged and broken", "negative"),
    ("Pathetic service, I regret this purchase", "negative"),
    ("Bad product, stopped working and made me angry", "negative"),
    ("Disgusting food and rude staff", "negative"),
    ("The app keeps failing, so annoying", "negative"),
    ("Poor design, terrible battery, worst phone I ever had", "negative"),
    ("Never again, made a huge mistake ordering this", "negative"),
    ("Scam seller, the product was fake garbage", "negative"),
    ("Odio este servicio, es terrible", "negative"),
    ("Producto malo, una pérdida de dinero", "negative"),
    ("Service horrible, je suis déçu", "negative"),
    ("Application nulle, ça ne marche jamais", "negative"),
    ("Schlechter Service, total enttäuscht", "negative"),
    ("Ich hasse diese App, furchtbar langsam", "negative"),
    ("Unacceptable delays and awful communication", "negative"),
    ("Sad to say this was the worst decision ever made", "negative"),
    # neutral
    ("The package arrived today", "neutral"),
    ("My package arrived today at noon", "neutral"),
    ("The order was shipped yesterday and arrived today", "neutral"),
    ("The meeting is scheduled for Monday morning", "neutral"),
    ("I received the package this afternoon", "neutral"),
    ("The store opens at nine tomorrow", "neutral"),
    ("Tracking number shows the package is in transit", "neutral"),
    ("The app version was updated to 2.3", "neutral"),
    ("I checked the order status today", "neutral"),
    ("The delivery arrived at the front door", "neutral"),
    ("She called the office about the invoice", "neutral"),
    ("The report will be published next week", "neutral"),
    ("We moved the files to the shared folder", "neutral"),
    ("The train departs from platform four", "neutral"),
    ("The parcel arrived today with the other mail", "neutral"),
    ("Please send the documents by Friday", "neutral"),
    ("El paquete llegó hoy por la mañana", "neutral"),
    ("La reunión es el lunes", "neutral"),
    ("Le colis est arrivé aujourd'hui", "neutral"),
    ("La réunion est prévue pour mardi", "neutral"),
    ("Das Paket ist heute angekommen", "neutral"),
    ("Das Meeting ist am Montag", "neutral"),
    ("The weather forecast says cloudy today", "neutral"),
    ("The package contains two cables and a manual", "neutral"),
]
