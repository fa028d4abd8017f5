"""
Canned recommendations and prompt wording per locale.

Used when the text-generation service is unavailable: one list of
recommendations per category and severity, picked deterministically by the
recommendation engine.
"""

from typing import Dict, List

FallbackTable = Dict[str, Dict[str, List[str]]]


ENGLISH_RECOMMENDATIONS: FallbackTable = {
    "seo": {
        "high": [
            "Add relevant meta description tags containing your main keywords. Ensure they are between 120 and 158 characters to optimize their visibility in search results.",
            "Implement appropriate H1 tags with your main keywords. Structure your content with H2 and H3 subtitles to improve readability and SEO.",
            "Fix canonical URL errors by implementing consistent rel='canonical' tags across all your pages. This will prevent duplicate content issues.",
            "Ensure all your links are in standard HTML rather than JavaScript. Avoid using onclick for navigation and prefer traditional <a href> tags for better indexing.",
            "Check your robots.txt file and remove any directives blocking access to important pages. Use Google Search Console to identify URLs blocked from crawling.",
        ],
        "medium": [
            "Optimize image alt attributes with relevant descriptions including your keywords. This will improve both accessibility and image SEO.",
            "Set up an XML sitemap and submit it to search engines. Ensure it is up-to-date and includes all your important pages.",
            "Improve your URL structure by using relevant keywords and avoiding unnecessary parameters. Prefer short and descriptive URLs.",
            "Optimize your page titles by including your main keywords at the beginning, while maintaining a length under 60 characters to avoid truncation in SERPs.",
            "Implement hreflang tags for multilingual sites to indicate to search engines which language version to display in search results.",
        ],
        "low": [
            "Add structured data (Schema.org) to enrich the display of your results in search engines. Focus on the types relevant to your business.",
            "Optimize internal link text with descriptive anchors containing your secondary keywords. Avoid generic anchors like 'click here'.",
            "Improve the length and quality of your content by aiming for at least 600 words per page with an optimal keyword density (2-3%).",
            "Add title attributes to important links to provide additional information to users and search engines about the link destination.",
            "Optimize your title tag by including your main keyword and your brand. Maintain a length between 50 and 60 characters for optimal visibility in SERPs.",
        ],
    },
    "performance": {
        "high": [
            "Compress and optimize your images using modern formats like WebP and AVIF. Implement lazy loading with loading='lazy' for images below the fold.",
            "Reduce initial server response time by optimizing database queries, increasing server resources, or using a CDN to distribute static content.",
            "Minimize and compress your JavaScript files with Terser or UglifyJS. Use async or defer attributes to avoid render blocking during script loading.",
            "Eliminate render-blocking resources by moving critical CSS inline in the <head> and loading non-critical styles asynchronously with preload.",
            "Reduce JavaScript execution time by revising your code to eliminate unnecessary operations, optimize loops, and avoid frequent DOM reflows and repaints.",
        ],
        "medium": [
            "Reduce the number of HTTP requests by bundling your CSS and JavaScript files. Use concatenation to limit server calls.",
            "Optimize critical rendering by minimizing blocking CSS. Identify and integrate essential styles directly in the HTML.",
            "Implement GZIP or Brotli compression on your server to reduce the size of transferred files. This can reduce data volume by up to 70%.",
            "Use HTTP/2 or HTTP/3 to allow multiplexing of requests on a single connection, improving the loading speed of multiple resources.",
            "Adopt an efficient caching strategy by configuring appropriate Cache-Control headers for static resources, with TTLs adapted to the update frequency.",
        ],
        "low": [
            "Reduce unnecessary redirects that increase loading time. Each redirect adds an additional round trip to the server.",
            "Optimize web font loading by using font-display:swap and limiting the number of variants. Consider using system fonts when possible.",
            "Implement preloading for critical resources with <link rel='preload'>. This will allow the browser to load them earlier in the process.",
            "Use IntersectionObserver to load off-screen content only when it enters the viewport, improving perceived performance.",
            "Optimize your animations by animating only transform and opacity, which trigger composition only and avoid costly repaints.",
        ],
    },
    "ui-ux": {
        "high": [
            "Improve color contrast to ensure better readability. Aim for a minimum ratio of 4.5:1 for standard text and 3:1 for large text in accordance with WCAG 2.1 AA.",
            "Add appropriate ARIA attributes to non-standard interactive elements. Ensure all elements are reachable via keyboard and screen readers by following established ARIA patterns.",
            "Structure your forms with explicit labels associated with each field via the for attribute. Add clear error messages with aria-describedby to improve accessibility.",
            "Ensure all interactive elements have an accessible name. Use descriptive text for buttons and add appropriate alt attributes to clickable images.",
            "Implement a logical and sequential heading hierarchy (H1-H6) to structure your content, facilitating navigation for screen reader users.",
        ],
        "medium": [
            "Optimize mobile navigation with sufficiently large touch targets (minimum 44x44px). Avoid placing clickable elements too close together to reduce touch errors.",
            "Improve the visual hierarchy of your content to guide the user's eye. Use size, color, and spacing to establish the relative importance of elements.",
            "Implement clear visual feedback for all interactions (hover, focus, active). Users should always know where they are and what is clickable.",
            "Ensure your site is usable with keyboard only. Check that the tab order is logical and that the focus indicator is clearly visible.",
            "Optimize forms by grouping related fields with fieldset and legend, providing clear instructions, and validating data client-side with immediate feedback.",
        ],
        "low": [
            "Add subtle animations to improve the user experience, while respecting motion reduction preferences (prefers-reduced-motion).",
            "Optimize mobile reading by using a font size of at least 16px and sufficient line height (1.5). Avoid long paragraphs without breaks.",
            "Improve the consistency of your interface by standardizing UI components such as buttons, forms, and cards across your site.",
            "Use microinteractions to provide feedback on user actions, making the interface more engaging and informative without overloading the experience.",
            "Optimize spacing and information density using a consistent grid and the law of proximity to visually group related elements.",
        ],
    },
}


FRENCH_RECOMMENDATIONS: FallbackTable = {
    "seo": {
        "high": [
            "Ajoutez des balises meta description pertinentes contenant vos mots-clés principaux. Assurez-vous qu'elles fassent entre 120 et 158 caractères pour optimiser leur visibilité dans les résultats de recherche.",
            "Intégrez des balises H1 appropriées avec vos mots-clés principaux. Structurez votre contenu avec des sous-titres H2 et H3 pour améliorer la lisibilité et le référencement.",
            "Corrigez les erreurs d'URL canoniques en implémentant des balises rel='canonical' cohérentes sur toutes vos pages. Cela évitera les problèmes de contenu dupliqué.",
            "Assurez-vous que tous vos liens sont en HTML standard plutôt qu'en JavaScript. Préférez des balises <a href> traditionnelles pour une meilleure indexation.",
            "Vérifiez votre fichier robots.txt et supprimez toute directive bloquant l'accès aux pages importantes. Utilisez Google Search Console pour identifier les URL bloquées.",
        ],
        "medium": [
            "Optimisez les attributs alt des images avec des descriptions pertinentes incluant vos mots-clés. Cela améliorera l'accessibilité et le référencement des images.",
            "Mettez en place un sitemap XML et soumettez-le aux moteurs de recherche. Assurez-vous qu'il soit à jour et comprenne toutes vos pages importantes.",
            "Améliorez la structure des URLs en utilisant des mots-clés pertinents et en évitant les paramètres inutiles. Préférez des URLs courtes et descriptives.",
            "Optimisez les titres de vos pages en plaçant vos mots-clés principaux en début de titre, avec une longueur inférieure à 60 caractères.",
            "Implémentez des balises hreflang pour les sites multilingues afin d'indiquer aux moteurs de recherche quelle version linguistique afficher.",
        ],
        "low": [
            "Ajoutez des données structurées (Schema.org) pour enrichir l'affichage de vos résultats dans les moteurs de recherche.",
            "Optimisez le texte des liens internes avec des ancres descriptives contenant vos mots-clés secondaires. Évitez les ancres génériques comme 'cliquez ici'.",
            "Améliorez la longueur et la qualité de votre contenu en visant au moins 600 mots par page avec une densité de mots-clés de 2 à 3 %.",
            "Ajoutez des attributs title aux liens importants pour informer les utilisateurs et les moteurs de recherche sur la destination du lien.",
            "Optimisez votre balise title en incluant votre mot-clé principal et votre marque, avec une longueur entre 50 et 60 caractères.",
        ],
    },
    "performance": {
        "high": [
            "Compressez et optimisez vos images en utilisant des formats modernes comme WebP et AVIF. Implémentez le lazy loading avec loading='lazy' pour les images sous la ligne de flottaison.",
            "Réduisez le temps de réponse initial du serveur en optimisant les requêtes de base de données ou en utilisant un CDN pour le contenu statique.",
            "Minimisez et compressez vos fichiers JavaScript avec Terser. Utilisez les attributs async ou defer pour éviter le blocage du rendu.",
            "Éliminez les ressources bloquant le rendu en plaçant les CSS critiques inline dans le <head> et en chargeant les autres styles de manière asynchrone.",
            "Réduisez le temps d'exécution JavaScript en éliminant les opérations inutiles et en évitant les reflows et repaints fréquents du DOM.",
        ],
        "medium": [
            "Réduisez le nombre de requêtes HTTP en regroupant vos fichiers CSS et JavaScript.",
            "Optimisez le rendu critique en minimisant les CSS bloquants. Intégrez les styles essentiels directement dans le HTML.",
            "Activez la compression GZIP ou Brotli sur votre serveur pour réduire la taille des fichiers transférés.",
            "Utilisez HTTP/2 ou HTTP/3 pour multiplexer les requêtes sur une seule connexion.",
            "Configurez des en-têtes Cache-Control appropriés pour les ressources statiques, avec des durées adaptées à leur fréquence de mise à jour.",
        ],
        "low": [
            "Réduisez les redirections inutiles. Chaque redirection ajoute un aller-retour supplémentaire au serveur.",
            "Optimisez le chargement des polices web avec font-display:swap et limitez le nombre de variantes.",
            "Préchargez les ressources critiques avec <link rel='preload'> pour que le navigateur les charge plus tôt.",
            "Utilisez IntersectionObserver pour charger les contenus hors écran uniquement lorsqu'ils entrent dans le viewport.",
            "N'animez que les propriétés transform et opacity pour éviter des repaints coûteux.",
        ],
    },
    "ui-ux": {
        "high": [
            "Améliorez le contraste des couleurs : visez un ratio minimum de 4.5:1 pour le texte standard et 3:1 pour les grands textes (WCAG 2.1 AA).",
            "Ajoutez des attributs ARIA appropriés aux éléments interactifs non standard et rendez-les accessibles au clavier et aux lecteurs d'écran.",
            "Associez un label explicite à chaque champ de formulaire via l'attribut for et reliez les messages d'erreur avec aria-describedby.",
            "Donnez un nom accessible à tous les éléments interactifs. Utilisez des textes descriptifs pour les boutons et des attributs alt pour les images cliquables.",
            "Mettez en place une hiérarchie de titres logique et séquentielle (H1-H6) pour faciliter la navigation avec un lecteur d'écran.",
        ],
        "medium": [
            "Prévoyez des zones tactiles d'au moins 44x44px sur mobile et espacez suffisamment les éléments cliquables.",
            "Améliorez la hiérarchie visuelle du contenu en jouant sur la taille, la couleur et l'espacement.",
            "Ajoutez des retours visuels clairs pour les états hover, focus et active.",
            "Vérifiez que le site est utilisable au clavier seul, avec un ordre de tabulation logique et un indicateur de focus visible.",
            "Regroupez les champs de formulaire liés avec fieldset et legend et validez les saisies avec un retour immédiat.",
        ],
        "low": [
            "Ajoutez des animations discrètes en respectant la préférence prefers-reduced-motion.",
            "Utilisez une taille de police d'au moins 16px et un interlignage de 1.5 sur mobile.",
            "Standardisez les composants d'interface comme les boutons, formulaires et cartes sur l'ensemble du site.",
            "Utilisez des microinteractions pour donner un retour sur les actions des utilisateurs.",
            "Utilisez une grille cohérente et la loi de proximité pour regrouper visuellement les éléments liés.",
        ],
    },
}


FALLBACK_RECOMMENDATIONS: Dict[str, FallbackTable] = {
    "en": ENGLISH_RECOMMENDATIONS,
    "fr": FRENCH_RECOMMENDATIONS,
}

GENERIC_FALLBACK = {
    "en": "To solve this {category} issue, review the affected code and apply established best practices.",
    "fr": "Pour résoudre ce problème de {category}, examinez le code concerné et appliquez les bonnes pratiques du secteur.",
}


PROMPT_TERMS = {
    "en": {
        "seo": "SEO",
        "performance": "web performance",
        "ui-ux": "UI/UX and accessibility",
        "expert": "You are a web optimization expert specialized in",
        "problem": "Here is an issue detected on a website",
        "specific": "Specific issue",
        "details": "Details",
        "severity": "Severity",
        "type": "Type",
        "audit": "Audit ID",
        "none": "not specified",
        "instruction": (
            "Provide a specific and technical recommendation to solve this precise issue. "
            "Avoid generic advice and focus on practical solutions that developers can implement. "
            "Limit your response to 2-3 sentences and be precise. "
            "Your response must be ONLY in English."
        ),
    },
    "fr": {
        "seo": "SEO",
        "performance": "performance web",
        "ui-ux": "UI/UX et accessibilité",
        "expert": "Tu es un expert en optimisation web spécialisé en",
        "problem": "Voici un problème détecté sur un site web",
        "specific": "Problème spécifique",
        "details": "Détails",
        "severity": "Sévérité",
        "type": "Type",
        "audit": "ID audit",
        "none": "non spécifié",
        "instruction": (
            "Donne une recommandation spécifique et technique pour résoudre ce problème précis. "
            "Évite les conseils génériques et concentre-toi sur des solutions pratiques que les développeurs peuvent mettre en œuvre. "
            "Limite ta réponse à 2-3 phrases et sois précis. "
            "Ta réponse doit être UNIQUEMENT en français."
        ),
    },
}
