"""
HTML fragments substituted into service pages.

Indentation matches the service page template so generated pages stay
readable in diffs.
"""

FEATURE_ITEM_JOIN = "\n                                    "


def render_features_list(features: list) -> str:
    """<li> per feature."""
    return FEATURE_ITEM_JOIN.join(f"<li>{feature}</li>" for feature in features)


def render_benefits(benefits: list) -> str:
    """Two-column benefit grid."""
    parts = []
    for benefit in benefits:
        parts.append(f"""
                                    <div class="col-md-6">
                                        <div class="benefit-item">
                                            <i class="bx bx-check"></i>
                                            <span>{benefit}</span>
                                        </div>
                                    </div>""")
    return "".join(parts)


def render_related_services(services: list) -> str:
    """Service cards linking to other service pages."""
    parts = []
    for service in services:
        parts.append(f"""
                            <div class="col-lg-4">
                                <div class="service-card">
                                    <div class="service-icon">
                                        <i class="{service.get('icon', '')}"></i>
                                    </div>
                                    <h3>{service.get('name', '')}</h3>
                                    <p>{service.get('shortDescription', '')}</p>
                                    <a href="{service.get('url', '')}" class="service-link">Learn More <i class="bx bx-right-arrow-alt"></i></a>
                                </div>
                            </div>""")
    return "".join(parts)


def render_analytics(measurement_id: str) -> str:
    """Google Analytics gtag snippet, or "" when no id is configured."""
    if not measurement_id:
        return ""
    return f"""
    <!-- Google Analytics -->
    <script async src="https://www.googletagmanager.com/gtag/js?id={measurement_id}"></script>
    <script>
        window.dataLayer = window.dataLayer || [];
        function gtag(){{dataLayer.push(arguments);}}
        gtag('js', new Date());
        gtag('config', '{measurement_id}');
    </script>"""
